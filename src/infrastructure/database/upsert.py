# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Single-statement upserts keyed by a unique column.

Both PostgreSQL and SQLite support ``INSERT ... ON CONFLICT DO UPDATE``, so
every create-if-absent-else-update runs as one atomic statement and
concurrent writers on the same key cannot lose updates.
"""

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.connection import DatabaseError

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def upsert(
    db: AsyncSession,
    model: type,
    *,
    key: str,
    values: dict[str, Any],
    update_values: dict[str, Any],
) -> None:
    """Insert a row or update the existing row with the same key.

    Args:
        db: Session to execute in.
        model: Mapped class to write.
        key: Name of the unique column identifying the row.
        values: Column values for the insert branch (must include ``key``).
        update_values: Column values or SQL expressions for the update branch.
            Expressions may reference the model's columns to build on the
            stored value (e.g. ``Model.counter + 1``).

    Raises:
        DatabaseError: If the bound dialect has no ON CONFLICT support.
    """
    dialect = db.bind.dialect.name
    insert_factory = _INSERTS.get(dialect)
    if insert_factory is None:
        raise DatabaseError(f"Upsert is not supported for dialect '{dialect}'")

    statement = insert_factory(model).values(**values)
    statement = statement.on_conflict_do_update(
        index_elements=[key],
        set_=update_values,
    )
    await db.execute(statement)
