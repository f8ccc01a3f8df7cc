# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sync status service.

This module provides the SyncStatusService class for:
- Recording the outcome of a cascade attempt per entity
- Reading the current propagation state of an entity
- Resetting the retry counter after manual intervention
- Listing entities whose propagation failed

Every write is a single ``INSERT ... ON CONFLICT DO UPDATE`` statement. A
FAILED attempt increments ``retry_count`` in SQL relative to the stored
value, so concurrent failures on the same entity are all counted and two
concurrent first attempts cannot create duplicate rows.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import SyncStatus
from src.infrastructure.database.models.base import new_uuid
from src.infrastructure.database.upsert import upsert
from src.models.enums import EntityType, SyncState
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class SyncStatusServiceError(Exception):
    """Base exception for sync status errors."""

    pass


class SyncStatusNotFoundError(SyncStatusServiceError):
    """Raised when no status exists for an entity."""

    pass


class SyncStatusService:
    """Service tracking per-entity propagation state.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize sync status service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def record_attempt(
        self,
        entity_id: str,
        entity_type: EntityType,
        status: SyncState,
        error: str | None = None,
    ) -> SyncStatus:
        """Record the outcome of an attempt.

        FAILED increments the retry count; SYNCED and PENDING leave it as is.

        Args:
            entity_id: ID of the entity.
            entity_type: Type of the entity.
            status: Outcome to record.
            error: Error message for a failed attempt.

        Returns:
            The stored status after the write.
        """
        now = utc_now()
        failed = status == SyncState.FAILED

        update_values = {
            "entity_type": entity_type.value,
            "status": status.value,
            "last_sync_at": now,
            "error": error,
        }
        if failed:
            update_values["retry_count"] = SyncStatus.retry_count + 1

        await upsert(
            self.db,
            SyncStatus,
            key="entity_id",
            values={
                "id": new_uuid(),
                "entity_id": entity_id,
                "entity_type": entity_type.value,
                "status": status.value,
                "last_sync_at": now,
                "error": error,
                "retry_count": 1 if failed else 0,
            },
            update_values=update_values,
        )

        stored = await self.read(entity_id)
        if stored is None:
            raise SyncStatusServiceError(f"Sync status for {entity_id} vanished after write")

        logger.debug(
            "Sync status %s for %s %s (retry_count=%d)",
            status.value,
            entity_type.value,
            entity_id,
            stored.retry_count,
        )
        return stored

    async def read(self, entity_id: str) -> SyncStatus | None:
        """Return the current status of an entity, if any."""
        result = await self.db.execute(
            select(SyncStatus)
            .where(SyncStatus.entity_id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def reset_retries(self, entity_id: str) -> SyncStatus:
        """Return an entity to a retryable state.

        The status becomes PENDING with a zero retry count and no error.

        Raises:
            SyncStatusNotFoundError: If the entity has no status.
        """
        status = await self.read(entity_id)
        if status is None:
            raise SyncStatusNotFoundError(f"No sync status for entity {entity_id}")

        status.retry_count = 0
        status.status = SyncState.PENDING.value
        status.error = None
        status.last_sync_at = utc_now()
        await self.db.flush()

        logger.info("Reset retries for %s %s", status.entity_type, entity_id)
        return status

    async def list_failed(self, limit: int = 50) -> list[SyncStatus]:
        """Return failed entities, most recent attempt first."""
        result = await self.db.execute(
            select(SyncStatus)
            .where(SyncStatus.status == SyncState.FAILED.value)
            .order_by(SyncStatus.last_sync_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
