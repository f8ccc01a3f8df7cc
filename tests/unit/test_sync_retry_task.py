# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the cascade retry actor.

The actor body is called directly through ``actor.fn`` in a separate
thread, since workers run it on their own per-thread event loop.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.infrastructure.background.tasks.sync_retry import (
    get_sync_actors,
    retry_entity_sync,
)
from src.models.enums import ChangeType, EntityType
from src.models.sync import RetryJob


@pytest.fixture
def job() -> RetryJob:
    """A class-level retry job."""
    return RetryJob(
        entity_id="class-1",
        entity_type=EntityType.CLASS,
        change_type=ChangeType.CALENDAR,
        program_id="program-1",
        actor_id="user-1",
        payload={"events": []},
    )


def _run_in_worker_thread(job: dict[str, Any]) -> dict[str, Any]:
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(retry_entity_sync.fn, job).result()


def _patch_coordinator(coordinator: MagicMock):
    return patch(
        "src.infrastructure.background.tasks.sync_retry._get_worker_coordinator",
        AsyncMock(return_value=coordinator),
    )


class TestRetryEntitySync:
    """Tests for retry_entity_sync."""

    def test_success(self, job: RetryJob) -> None:
        """Test that the job is decoded and handed to the coordinator."""
        coordinator = MagicMock()
        coordinator.retry = AsyncMock()

        with _patch_coordinator(coordinator):
            result = _run_in_worker_thread(job.model_dump(mode="json"))

        assert result == {
            "status": "success",
            "entity_id": "class-1",
            "entity_type": "CLASS",
        }
        coordinator.retry.assert_awaited_once_with(job)

    def test_failure_is_reported_not_raised(self, job: RetryJob) -> None:
        """Test that a failed retry returns a failed status."""
        coordinator = MagicMock()
        coordinator.retry = AsyncMock(side_effect=RuntimeError("database down"))

        with _patch_coordinator(coordinator):
            result = _run_in_worker_thread(job.model_dump(mode="json"))

        assert result["status"] == "failed"
        assert result["entity_id"] == "class-1"
        assert result["error"] == "database down"


def test_actor_does_not_retry_on_its_own() -> None:
    """Test that Dramatiq retries are disabled for the actor."""
    assert retry_entity_sync.options["max_retries"] == 0
    assert get_sync_actors() == [retry_entity_sync]
