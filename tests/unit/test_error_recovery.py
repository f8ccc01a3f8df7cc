# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the error recovery policy."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from src.domains.recovery.service import (
    PERMANENT_FAILURE,
    ErrorRecoveryService,
    RecoveryOutcome,
    RetryConfig,
)
from src.domains.sync_status.service import SyncStatusService
from src.infrastructure.background.retry_queue import InMemoryRetryQueue
from src.infrastructure.database.models import ErrorLog, Notification
from src.infrastructure.notifications.service import NotificationService
from src.models.enums import ChangeType, EntityType, NotificationType, SyncState
from src.models.sync import RetryJob


@pytest.fixture
def job() -> RetryJob:
    """A class unit of a calendar cascade."""
    return RetryJob(
        entity_id="class-0001",
        entity_type=EntityType.CLASS,
        change_type=ChangeType.CALENDAR,
        program_id="program-0001",
        actor_id="user-0001",
        payload={"events": []},
    )


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self) -> None:
        """Test default retry policy."""
        config = RetryConfig()

        assert config.max_retries == 3
        assert config.backoff_interval_ms == 5000

    def test_backoff_doubles(self) -> None:
        """Test that each retry waits twice as long as the previous one."""
        config = RetryConfig(max_retries=4, backoff_interval_ms=100)

        assert [config.backoff_ms(n) for n in (1, 2, 3, 4)] == [100, 200, 400, 800]

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_retries": -1}, {"backoff_interval_ms": -5}],
    )
    def test_rejects_negative_values(self, kwargs: dict[str, int]) -> None:
        """Test that negative limits are rejected."""
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)

    def test_from_settings(self) -> None:
        """Test building the policy from recovery settings."""
        settings = MagicMock()
        settings.max_retries = 5
        settings.backoff_interval_ms = 250

        config = RetryConfig.from_settings(settings)

        assert config == RetryConfig(max_retries=5, backoff_interval_ms=250)


class TestHandleFailedSync:
    """Tests for ErrorRecoveryService.handle_failed_sync."""

    @pytest.mark.asyncio
    async def test_retries_then_fails_permanently(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test N+1 attempts with exponential backoff."""
        queue = InMemoryRetryQueue()
        service = ErrorRecoveryService(
            session_factory, queue, RetryConfig(max_retries=3, backoff_interval_ms=5000)
        )

        outcomes = [
            await service.handle_failed_sync(job, RuntimeError("boom")) for _ in range(4)
        ]

        assert outcomes == [
            RecoveryOutcome.RETRY_SCHEDULED,
            RecoveryOutcome.RETRY_SCHEDULED,
            RecoveryOutcome.RETRY_SCHEDULED,
            RecoveryOutcome.PERMANENTLY_FAILED,
        ]
        assert [r.delay_ms for r in queue.history] == [5000, 10000, 20000]
        assert all(r.job == job for r in queue.history)

        async with session_factory() as db:
            status = await SyncStatusService(db).read(job.entity_id)
        assert status.status == SyncState.FAILED.value
        assert status.retry_count == 4
        assert status.error == "boom"

    @pytest.mark.asyncio
    async def test_retry_marks_entity_pending(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test that a scheduled retry leaves the entity PENDING."""
        service = ErrorRecoveryService(session_factory, InMemoryRetryQueue())

        await service.handle_failed_sync(job, RuntimeError("timeout"))

        async with session_factory() as db:
            status = await SyncStatusService(db).read(job.entity_id)
        assert status.status == SyncState.PENDING.value
        assert status.retry_count == 1
        assert status.entity_type == EntityType.CLASS.value

    @pytest.mark.asyncio
    async def test_zero_retries_fails_immediately(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test that max_retries=0 means a single attempt."""
        queue = InMemoryRetryQueue()
        service = ErrorRecoveryService(session_factory, queue, RetryConfig(max_retries=0))

        outcome = await service.handle_failed_sync(job, RuntimeError("boom"))

        assert outcome is RecoveryOutcome.PERMANENTLY_FAILED
        assert queue.history == []

    @pytest.mark.asyncio
    async def test_permanent_failure_notifies_admins(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test the administrator notification on permanent failure."""
        service = ErrorRecoveryService(
            session_factory,
            InMemoryRetryQueue(),
            RetryConfig(max_retries=0),
            admin_user_ids=["admin-1", "admin-2", "admin-1"],
        )

        await service.handle_failed_sync(job, ValueError("invalid calendar"))

        async with session_factory() as db:
            notifications = list((await db.execute(select(Notification))).scalars().all())
            assert len(notifications) == 1
            alert = await NotificationService(db).get(notifications[0].id)

        assert alert.type == NotificationType.CALENDAR_UPDATE.value
        assert alert.entity_id == job.entity_id
        assert alert.sender_id == job.actor_id
        assert alert.details["status"] == PERMANENT_FAILURE
        assert alert.details["error"] == "invalid calendar"
        assert alert.details["entity_type"] == EntityType.CLASS.value
        assert alert.details["program_id"] == job.program_id
        assert alert.details["timestamp"]
        assert sorted(r.recipient_id for r in alert.recipients) == ["admin-1", "admin-2"]

    @pytest.mark.asyncio
    async def test_only_one_admin_notification(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test that retries before the last attempt notify nobody."""
        service = ErrorRecoveryService(
            session_factory, InMemoryRetryQueue(), RetryConfig(max_retries=2)
        )

        for _ in range(3):
            await service.handle_failed_sync(job, RuntimeError("boom"))

        async with session_factory() as db:
            notifications = list((await db.execute(select(Notification))).scalars().all())
        assert len(notifications) == 1

    @pytest.mark.asyncio
    async def test_error_log_precedes_decision(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test that the error is logged even when scheduling fails."""
        queue = MagicMock()
        queue.schedule = AsyncMock(side_effect=ConnectionError("broker down"))
        service = ErrorRecoveryService(session_factory, queue)

        with pytest.raises(ConnectionError):
            await service.handle_failed_sync(job, RuntimeError("boom"))

        history = await service.error_history(job.entity_id)
        assert len(history) == 1
        assert history[0].error_message == "boom"
        assert "RuntimeError" in history[0].stack_trace

    @pytest.mark.asyncio
    async def test_error_without_message_uses_type_name(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test that an empty exception message is replaced by its type."""
        service = ErrorRecoveryService(session_factory, InMemoryRetryQueue())

        await service.handle_failed_sync(job, TimeoutError())

        async with session_factory() as db:
            entry = (await db.execute(select(ErrorLog))).scalar_one()
        assert entry.error_message == "TimeoutError"

    @pytest.mark.asyncio
    async def test_reset_makes_entity_retryable(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test that reset_retries restarts the backoff sequence."""
        queue = InMemoryRetryQueue()
        service = ErrorRecoveryService(
            session_factory, queue, RetryConfig(max_retries=1, backoff_interval_ms=100)
        )
        await service.handle_failed_sync(job, RuntimeError("boom"))
        outcome = await service.handle_failed_sync(job, RuntimeError("boom"))
        assert outcome is RecoveryOutcome.PERMANENTLY_FAILED

        async with session_factory() as db:
            await SyncStatusService(db).reset_retries(job.entity_id)

        outcome = await service.handle_failed_sync(job, RuntimeError("boom"))

        assert outcome is RecoveryOutcome.RETRY_SCHEDULED
        assert [r.delay_ms for r in queue.history] == [100, 100]

    @pytest.mark.asyncio
    async def test_error_history_newest_first(
        self,
        session_factory,
        job: RetryJob,
    ) -> None:
        """Test that error history lists every failure, newest first."""
        service = ErrorRecoveryService(session_factory, InMemoryRetryQueue())

        await service.handle_failed_sync(job, RuntimeError("first"))
        await service.handle_failed_sync(job, RuntimeError("second"))

        history = await service.error_history(job.entity_id)
        assert [entry.error_message for entry in history] == ["second", "first"]
