# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for SchoolSync.

This package provides SQLAlchemy async database connections and the
session-scope factories used by the domain services.

Example:
    from src.infrastructure.database import init_database, get_session

    await init_database(settings)

    async with get_session() as session:
        result = await session.execute(select(Program))
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    SessionFactory,
    build_sessionmaker,
    check_database_connection,
    close_database,
    create_engine_for,
    get_engine,
    get_session,
    get_session_factory,
    get_sessionmaker,
    init_database,
    make_session_factory,
)

__all__ = [
    "DatabaseError",
    "SessionFactory",
    "build_sessionmaker",
    "check_database_connection",
    "close_database",
    "create_engine_for",
    "get_engine",
    "get_session",
    "get_session_factory",
    "get_sessionmaker",
    "init_database",
    "make_session_factory",
]
