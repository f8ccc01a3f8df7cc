# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cascading update coordinator for program configuration.

This module provides the ProgramCascadeCoordinator class, which propagates a
change to a program's term system, assessment system or calendar to every
class group and class of the program:

1. The program is loaded (unknown id fails before anything is written),
   updated, and the change is logged.
2. Class groups are processed one after another. For each group the
   settings mirror is upserted, a notification is emitted, and then all of
   its classes are updated concurrently (settings upsert + notification).
3. Each unit of work (program, class group, class) runs in its own session.
   A failing unit is handed to error recovery with its explicit entity type
   and does not stop the remaining units.
4. When any unit failed the coordinator raises ``CascadeError`` listing
   every failure.

Upserts are keyed by entity id, so running the same cascade twice leaves
the same settings behind.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, assert_never

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.change_tracking.service import ChangeTrackingService
from src.domains.program.terms import class_group_terms_key
from src.domains.recovery.service import ErrorRecoveryService
from src.domains.sync_status.service import SyncStatusService
from src.infrastructure.cache import Cache
from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.database.models import (
    Class,
    ClassGroup,
    ClassGroupSettings,
    ClassSettings,
    Program,
)
from src.infrastructure.database.models.base import new_uuid
from src.infrastructure.database.upsert import upsert
from src.infrastructure.notifications.service import NotificationService
from src.models.assessment import AssessmentUpdate
from src.models.calendar import CalendarUpdate
from src.models.enums import ChangeType, EntityType, NotificationType, SyncState
from src.models.sync import RetryJob
from src.models.terms import TermUpdate
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ProgramServiceError(Exception):
    """Base exception for program cascade errors."""

    pass


class ProgramNotFoundError(ProgramServiceError):
    """Raised when the program does not exist."""

    pass


@dataclass(frozen=True)
class CascadeFailure:
    """One unit of work that failed during a cascade."""

    entity_id: str
    entity_type: EntityType
    error: str

    def as_dict(self) -> dict[str, str]:
        return {
            "entity_id": self.entity_id,
            "entity_type": self.entity_type.value,
            "error": self.error,
        }


class CascadeError(ProgramServiceError):
    """Raised when at least one unit of a cascade failed.

    Every failure has already been handed to error recovery.

    Attributes:
        program_id: Program the cascade started from.
        failures: Failed units in processing order.
    """

    def __init__(self, program_id: str, failures: list[CascadeFailure]) -> None:
        self.program_id = program_id
        self.failures = failures
        summary = ", ".join(f"{f.entity_type.value} {f.entity_id}" for f in failures)
        super().__init__(f"Cascade for program {program_id} failed for: {summary}")


def settings_column(change_type: ChangeType) -> str:
    """Name of the settings-mirror column a dimension is written to."""
    match change_type:
        case ChangeType.TERM:
            return "term_settings"
        case ChangeType.ASSESSMENT:
            return "assessment_settings"
        case ChangeType.CALENDAR:
            return "calendar_settings"
        case _:
            assert_never(change_type)


def apply_to_program(program: Program, change_type: ChangeType, payload: dict[str, Any]) -> None:
    """Write a change payload into the program's descriptors."""
    match change_type:
        case ChangeType.TERM:
            program.term_system = payload
        case ChangeType.ASSESSMENT:
            program.assessment_system = payload["assessment_system"]
            program.grading_schema = payload["grading_schema"]
        case ChangeType.CALENDAR:
            program.calendar = payload
        case _:
            assert_never(change_type)


class ProgramCascadeCoordinator:
    """Propagates program configuration changes to dependent entities.

    Example:
        coordinator = ProgramCascadeCoordinator(session_factory, recovery, cache)
        program = await coordinator.cascade_term_updates(program_id, update, user_id)
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        recovery: ErrorRecoveryService,
        cache: Cache | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            session_factory: Opens one transactional session per unit of work.
            recovery: Receives every failed unit.
            cache: Cache whose class group entries are invalidated.
        """
        self._session_factory = session_factory
        self._recovery = recovery
        self._cache = cache

    @property
    def recovery(self) -> ErrorRecoveryService:
        """Recovery service receiving this coordinator's failed units."""
        return self._recovery

    async def cascade_term_updates(
        self, program_id: str, updates: TermUpdate, actor_id: str
    ) -> Program:
        """Replace the program's term system and propagate it.

        Raises:
            ProgramNotFoundError: If the program does not exist.
            CascadeError: If any unit failed.
        """
        return await self._cascade(
            program_id, ChangeType.TERM, updates.model_dump(mode="json"), actor_id
        )

    async def cascade_assessment_updates(
        self, program_id: str, updates: AssessmentUpdate, actor_id: str
    ) -> Program:
        """Replace the program's assessment system and propagate it.

        Raises:
            ProgramNotFoundError: If the program does not exist.
            CascadeError: If any unit failed.
        """
        return await self._cascade(
            program_id, ChangeType.ASSESSMENT, updates.model_dump(mode="json"), actor_id
        )

    async def cascade_calendar_updates(
        self, program_id: str, updates: CalendarUpdate, actor_id: str
    ) -> Program:
        """Replace the program's calendar and propagate it.

        Raises:
            ProgramNotFoundError: If the program does not exist.
            CascadeError: If any unit failed.
        """
        return await self._cascade(
            program_id, ChangeType.CALENDAR, updates.model_dump(mode="json"), actor_id
        )

    async def retry(self, job: RetryJob) -> None:
        """Re-run the unit of work described by a retry job.

        Raises:
            ProgramNotFoundError: If a program retry finds no program.
            CascadeError: If the unit (or any unit it covers) failed again.
        """
        logger.info("Retrying %s %s", job.entity_type.value, job.entity_id)

        match job.entity_type:
            case EntityType.PROGRAM:
                await self._cascade(job.program_id, job.change_type, job.payload, job.actor_id)
                return
            case EntityType.CLASS_GROUP:
                failures = await self._run_group(job, job.entity_id)
            case EntityType.CLASS:
                failure = await self._run_class(job, job.entity_id)
                failures = [failure] if failure else []
            case _:
                assert_never(job.entity_type)

        if failures:
            raise CascadeError(job.program_id, failures)

    async def _cascade(
        self,
        program_id: str,
        change_type: ChangeType,
        payload: dict[str, Any],
        actor_id: str,
    ) -> Program:
        root_job = RetryJob(
            entity_id=program_id,
            entity_type=EntityType.PROGRAM,
            change_type=change_type,
            program_id=program_id,
            actor_id=actor_id,
            payload=payload,
        )

        program: Program | None = None
        group_ids: list[str] = []

        async def update_root() -> None:
            nonlocal program, group_ids
            async with self._session_factory() as db:
                program = await self._get_program(db, program_id)
                apply_to_program(program, change_type, payload)
                await db.flush()

                await ChangeTrackingService(db).record(
                    EntityType.PROGRAM, program_id, change_type, payload, actor_id
                )
                await SyncStatusService(db).record_attempt(
                    program_id, EntityType.PROGRAM, SyncState.SYNCED
                )
                group_ids = await self._class_group_ids(db, program_id)

        try:
            failure = await self._run_unit(root_job, update_root)
        except ProgramNotFoundError:
            logger.warning("Cascade rejected: program %s not found", program_id)
            raise
        if failure:
            raise CascadeError(program_id, [failure])

        logger.info(
            "Cascading %s update of program %s to %d class groups",
            change_type.value,
            program_id,
            len(group_ids),
        )

        failures: list[CascadeFailure] = []
        for group_id in group_ids:
            failures.extend(await self._run_group(root_job, group_id))

        if failures:
            raise CascadeError(program_id, failures)

        if program is None:
            raise ProgramServiceError(f"Update of program {program_id} returned no program")
        return program

    async def _run_group(self, origin: RetryJob, class_group_id: str) -> list[CascadeFailure]:
        """Update one class group, then all of its classes concurrently."""
        job = origin.model_copy(
            update={"entity_id": class_group_id, "entity_type": EntityType.CLASS_GROUP}
        )
        class_ids: list[str] = []

        async def update_group() -> None:
            nonlocal class_ids
            async with self._session_factory() as db:
                await self._upsert_settings(
                    db, ClassGroupSettings, "class_group_id", class_group_id, job
                )
                await NotificationService(db).emit(
                    entity_id=class_group_id,
                    type=NotificationType.for_change(job.change_type),
                    details=self._notification_details(job),
                    sender_id=job.actor_id,
                    title=f"{job.change_type.value.title()} settings updated",
                )
                await SyncStatusService(db).record_attempt(
                    class_group_id, EntityType.CLASS_GROUP, SyncState.SYNCED
                )
                class_ids = await self._class_ids(db, class_group_id)
                # Last step so a cache error rolls the group back into recovery
                if self._cache is not None and job.change_type is ChangeType.TERM:
                    await self._cache.delete(class_group_terms_key(class_group_id))

        failure = await self._run_unit(job, update_group)
        if failure:
            return [failure]

        results = await asyncio.gather(
            *(self._run_class(job, class_id) for class_id in class_ids),
            return_exceptions=True,
        )
        failures: list[CascadeFailure] = []
        for result in results:
            if isinstance(result, BaseException):
                # Recovery itself failed; nothing recorded this unit
                raise result
            if result is not None:
                failures.append(result)
        return failures

    async def _run_class(self, origin: RetryJob, class_id: str) -> CascadeFailure | None:
        job = origin.model_copy(update={"entity_id": class_id, "entity_type": EntityType.CLASS})

        async def update_class() -> None:
            async with self._session_factory() as db:
                await self._upsert_settings(db, ClassSettings, "class_id", class_id, job)
                await NotificationService(db).emit(
                    entity_id=class_id,
                    type=NotificationType.for_change(job.change_type),
                    details=self._notification_details(job),
                    sender_id=job.actor_id,
                    title=f"{job.change_type.value.title()} settings updated",
                )
                await SyncStatusService(db).record_attempt(
                    class_id, EntityType.CLASS, SyncState.SYNCED
                )

        return await self._run_unit(job, update_class)

    async def _run_unit(
        self, job: RetryJob, work: Callable[[], Awaitable[None]]
    ) -> CascadeFailure | None:
        """Run one unit; hand a failure to recovery and report it."""
        try:
            await work()
        except ProgramNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "Cascade unit failed for %s %s: %s",
                job.entity_type.value,
                job.entity_id,
                e,
                exc_info=True,
            )
            await self._recovery.handle_failed_sync(job, e)
            return CascadeFailure(job.entity_id, job.entity_type, str(e) or type(e).__name__)
        return None

    async def _upsert_settings(
        self,
        db: AsyncSession,
        model: type[ClassGroupSettings] | type[ClassSettings],
        key: str,
        entity_id: str,
        job: RetryJob,
    ) -> None:
        column = settings_column(job.change_type)
        now = utc_now()
        await upsert(
            db,
            model,
            key=key,
            values={"id": new_uuid(), key: entity_id, column: job.payload, "last_updated": now},
            update_values={column: job.payload, "last_updated": now},
        )

    @staticmethod
    def _notification_details(job: RetryJob) -> dict[str, Any]:
        return {
            "program_id": job.program_id,
            "entity_type": job.entity_type.value,
            "change_type": job.change_type.value,
            "changes": job.payload,
        }

    async def _get_program(self, db: AsyncSession, program_id: str) -> Program:
        program = await db.get(Program, program_id)
        if program is None:
            raise ProgramNotFoundError(f"Program {program_id} not found")
        return program

    async def _class_group_ids(self, db: AsyncSession, program_id: str) -> list[str]:
        result = await db.execute(
            select(ClassGroup.id)
            .where(ClassGroup.program_id == program_id)
            .order_by(ClassGroup.created_at, ClassGroup.id)
        )
        return list(result.scalars().all())

    async def _class_ids(self, db: AsyncSession, class_group_id: str) -> list[str]:
        result = await db.execute(
            select(Class.id)
            .where(Class.class_group_id == class_group_id)
            .order_by(Class.created_at, Class.id)
        )
        return list(result.scalars().all())
