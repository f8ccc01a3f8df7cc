# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error recovery policy for failed cascade units.

This module provides the ErrorRecoveryService class, which decides what
happens after a unit of cascade work fails:

1. The failure is written to the error log.
2. The failed attempt is counted on the entity's sync status.
3. While retries remain, the entity is marked PENDING and the unit is
   scheduled again after an exponential backoff.
4. Once retries are exhausted, the entity stays FAILED and administrators
   are notified once.

With ``max_retries = N`` an entity is attempted N+1 times in total and the
waits between attempts are ``base, 2*base, ..., 2**(N-1)*base``.
"""

import logging
import traceback
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.sync_status.service import SyncStatusService
from src.infrastructure.background.retry_queue import RetryQueue
from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.database.models import ErrorLog
from src.infrastructure.notifications.service import NotificationService
from src.models.enums import NotificationType, SyncState
from src.models.sync import RetryJob
from src.utils.datetime import format_iso, utc_now

if TYPE_CHECKING:
    from src.core.config.settings import RecoverySettings

logger = logging.getLogger(__name__)

PERMANENT_FAILURE = "PERMANENT_FAILURE"


@dataclass(frozen=True)
class RetryConfig:
    """Retry limits and backoff base.

    Attributes:
        max_retries: Automatic retries after the first failed attempt.
        backoff_interval_ms: Wait before the first retry; doubles each time.
    """

    max_retries: int = 3
    backoff_interval_ms: int = 5000

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.backoff_interval_ms < 0:
            raise ValueError("backoff_interval_ms must be >= 0")

    @classmethod
    def from_settings(cls, settings: "RecoverySettings") -> "RetryConfig":
        return cls(
            max_retries=settings.max_retries,
            backoff_interval_ms=settings.backoff_interval_ms,
        )

    def backoff_ms(self, failed_attempts: int) -> int:
        """Delay before the next attempt after ``failed_attempts`` failures."""
        return self.backoff_interval_ms * 2 ** (failed_attempts - 1)


class RecoveryOutcome(str, Enum):
    """Decision taken for a failed unit."""

    RETRY_SCHEDULED = "RETRY_SCHEDULED"
    PERMANENTLY_FAILED = "PERMANENTLY_FAILED"


class ErrorRecoveryService:
    """Applies the retry policy to failed cascade units.

    Each step runs in its own session scope so the error log entry is
    committed before any retry decision is made.

    Attributes:
        config: Retry limits and backoff base.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        retry_queue: RetryQueue,
        config: RetryConfig | None = None,
        admin_user_ids: Iterable[str] = (),
    ) -> None:
        """Initialize the recovery service.

        Args:
            session_factory: Opens a transactional session scope.
            retry_queue: Receives jobs to run after their backoff.
            config: Retry policy; defaults to 3 retries with a 5s base.
            admin_user_ids: Recipients of permanent-failure notifications.
        """
        self._session_factory = session_factory
        self._retry_queue = retry_queue
        self.config = config or RetryConfig()
        self._admin_user_ids = tuple(admin_user_ids)

    async def handle_failed_sync(self, job: RetryJob, error: BaseException) -> RecoveryOutcome:
        """Record a failure and decide between retry and permanent failure.

        Args:
            job: The unit of work that failed.
            error: The exception it raised.

        Returns:
            The decision taken.
        """
        message = str(error) or type(error).__name__

        async with self._session_factory() as db:
            db.add(
                ErrorLog(
                    entity_id=job.entity_id,
                    entity_type=job.entity_type.value,
                    error_message=message,
                    stack_trace="".join(traceback.format_exception(error)),
                )
            )

        async with self._session_factory() as db:
            sync_status = SyncStatusService(db)
            status = await sync_status.record_attempt(
                job.entity_id, job.entity_type, SyncState.FAILED, message
            )
            failed_attempts = status.retry_count

            if failed_attempts - 1 < self.config.max_retries:
                await sync_status.record_attempt(
                    job.entity_id, job.entity_type, SyncState.PENDING, message
                )
                outcome = RecoveryOutcome.RETRY_SCHEDULED
            else:
                await self._notify_permanent_failure(db, job, message)
                outcome = RecoveryOutcome.PERMANENTLY_FAILED

        if outcome is RecoveryOutcome.RETRY_SCHEDULED:
            delay_ms = self.config.backoff_ms(failed_attempts)
            await self._retry_queue.schedule(job, delay_ms)
            logger.warning(
                "Sync of %s %s failed (attempt %d), retrying in %dms: %s",
                job.entity_type.value,
                job.entity_id,
                failed_attempts,
                delay_ms,
                message,
            )
        else:
            logger.error(
                "Sync of %s %s permanently failed after %d attempts: %s",
                job.entity_type.value,
                job.entity_id,
                failed_attempts,
                message,
            )

        return outcome

    async def _notify_permanent_failure(
        self, db: AsyncSession, job: RetryJob, message: str
    ) -> None:
        await NotificationService(db).emit(
            entity_id=job.entity_id,
            type=NotificationType.for_change(job.change_type),
            details={
                "status": PERMANENT_FAILURE,
                "error": message,
                "timestamp": format_iso(utc_now()),
                "entity_type": job.entity_type.value,
                "program_id": job.program_id,
            },
            sender_id=job.actor_id,
            title=f"{job.change_type.value.title()} update failed for {job.entity_type.value}",
            recipient_ids=self._admin_user_ids,
        )

    async def error_history(self, entity_id: str, limit: int = 50) -> list[ErrorLog]:
        """Return logged failures of an entity, newest first."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(ErrorLog)
                .where(ErrorLog.entity_id == entity_id)
                .order_by(ErrorLog.timestamp.desc())
                .limit(limit)
            )
            return list(result.scalars().all())
