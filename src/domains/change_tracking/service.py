# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Change tracking service.

This module provides the ChangeTrackingService class for:
- Appending immutable change records for root-level configuration edits
- Reading the change history of an entity
- Listing recent changes across entities

Records are append-only. The service offers no update or delete operation.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import ChangeLog
from src.models.enums import ChangeType, EntityType

logger = logging.getLogger(__name__)


class ChangeTrackingError(Exception):
    """Base exception for change tracking errors."""

    pass


class ChangeTrackingService:
    """Service recording configuration changes.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize change tracking service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def record(
        self,
        entity_type: EntityType,
        entity_id: str,
        change_type: ChangeType,
        changes: dict[str, Any],
        user_id: str,
    ) -> ChangeLog:
        """Append one change record.

        Args:
            entity_type: Type of the changed entity.
            entity_id: ID of the changed entity.
            change_type: Changed configuration dimension.
            changes: JSON-serializable description of the new values.
            user_id: Actor who made the change.

        Returns:
            The stored record.
        """
        entry = ChangeLog(
            entity_type=entity_type.value,
            entity_id=entity_id,
            change_type=change_type.value,
            changes=changes,
            user_id=user_id,
        )
        self.db.add(entry)
        await self.db.flush()

        logger.info(
            "Recorded %s change on %s %s by %s",
            change_type.value,
            entity_type.value,
            entity_id,
            user_id,
        )
        return entry

    async def history(self, entity_id: str, limit: int = 50) -> list[ChangeLog]:
        """Return the change history of an entity, newest first."""
        result = await self.db.execute(
            select(ChangeLog)
            .where(ChangeLog.entity_id == entity_id)
            .order_by(ChangeLog.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def recent_changes(
        self,
        change_type: ChangeType | None = None,
        limit: int = 20,
    ) -> list[ChangeLog]:
        """Return the most recent changes across all entities.

        Args:
            change_type: Optional dimension filter.
            limit: Maximum number of records.
        """
        query = select(ChangeLog)
        if change_type is not None:
            query = query.where(ChangeLog.change_type == change_type.value)

        result = await self.db.execute(
            query.order_by(ChangeLog.timestamp.desc()).limit(limit)
        )
        return list(result.scalars().all())
