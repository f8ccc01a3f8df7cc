# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cascade retry background task.

Tasks:
    - retry_entity_sync: Re-run one failed unit of a program cascade

The error recovery policy sends this actor with ``delay=backoff_ms``.
Dramatiq's own retries are disabled because the policy already counts
attempts and schedules the next one.

Example:
    >>> from src.infrastructure.background.tasks import retry_entity_sync
    >>> retry_entity_sync.send_with_options(kwargs={"job": job.model_dump(mode="json")}, delay=5000)
"""

import logging
from typing import Any

import dramatiq

from src.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from src.infrastructure.background.tasks.base import run_async, thread_resources

setup_dramatiq()

logger = logging.getLogger(__name__)


async def _get_worker_coordinator():
    """Build (once per worker thread loop) the coordinator used by retries."""
    # Import here to avoid circular imports
    from src.core.config import get_settings
    from src.domains.program.factory import build_coordinator
    from src.infrastructure.background.retry_queue import DramatiqRetryQueue
    from src.infrastructure.cache import build_cache
    from src.infrastructure.database.connection import (
        build_sessionmaker,
        create_engine_for,
        make_session_factory,
    )

    resources = thread_resources()
    coordinator = resources.get("coordinator")
    if coordinator is None:
        settings = get_settings()
        engine = create_engine_for(
            settings.database.url,
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
        )
        cache, _ = await build_cache(settings)
        coordinator = build_coordinator(
            settings,
            make_session_factory(build_sessionmaker(engine)),
            DramatiqRetryQueue(),
            cache,
        )
        resources["engine"] = engine
        resources["coordinator"] = coordinator
    return coordinator


@dramatiq.actor(
    queue_name=Queues.SYNC,
    max_retries=0,
    time_limit=600000,  # 10 minutes
    priority=Priority.HIGH,
)
def retry_entity_sync(job: dict[str, Any]) -> dict[str, Any]:
    """Re-run a failed cascade unit.

    Args:
        job: A ``RetryJob`` dumped in JSON mode.

    Returns:
        Execution status.
    """
    from src.models.sync import RetryJob

    retry_job = RetryJob.model_validate(job)
    logger.info(
        "Retrying sync of %s %s",
        retry_job.entity_type.value,
        retry_job.entity_id,
    )

    async def _retry() -> None:
        coordinator = await _get_worker_coordinator()
        await coordinator.retry(retry_job)

    try:
        run_async(_retry())
        return {
            "status": "success",
            "entity_id": retry_job.entity_id,
            "entity_type": retry_job.entity_type.value,
        }
    except Exception as e:
        # The failure was already handed to recovery inside the coordinator
        logger.error(
            "Retry of %s %s failed: %s",
            retry_job.entity_type.value,
            retry_job.entity_id,
            str(e),
            exc_info=True,
        )
        return {
            "status": "failed",
            "entity_id": retry_job.entity_id,
            "entity_type": retry_job.entity_type.value,
            "error": str(e),
        }


def get_sync_actors() -> list[dramatiq.Actor]:
    """Get all sync-related actors."""
    return [retry_entity_sync]
