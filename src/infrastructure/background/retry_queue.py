# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Delayed execution of cascade retries.

A retry queue holds a ``RetryJob`` until its backoff delay has elapsed and
then hands it to the registered handler (the cascade coordinator's
``retry``). Three implementations are provided:

- InMemoryRetryQueue: virtual clock driven by ``advance(ms)``; used by tests.
- AsyncioRetryQueue: real timers on the running event loop; single process.
- DramatiqRetryQueue: delayed Dramatiq messages; durable across restarts.

Example:
    queue = InMemoryRetryQueue()
    queue.set_handler(coordinator.retry)
    await queue.schedule(job, delay_ms=5000)
    await queue.advance(5000)  # runs the job
"""

import asyncio
import heapq
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from src.models.sync import RetryJob

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)

RetryHandler = Callable[[RetryJob], Awaitable[None]]


class RetryQueue(Protocol):
    """Schedules a job to run after a delay."""

    def set_handler(self, handler: RetryHandler) -> None: ...

    async def schedule(self, job: RetryJob, delay_ms: int) -> None: ...


@dataclass(frozen=True)
class ScheduledRetry:
    """A job accepted by the queue, with its delay and due time."""

    job: RetryJob
    delay_ms: int
    due_ms: int


async def _run_job(handler: RetryHandler | None, job: RetryJob) -> None:
    if handler is None:
        raise RuntimeError("Retry queue has no handler. Call set_handler() first.")
    try:
        await handler(job)
    except Exception:
        # Recovery already recorded the failure and decided what happens next
        logger.warning(
            "Retry of %s %s did not succeed",
            job.entity_type.value,
            job.entity_id,
            exc_info=True,
        )


class InMemoryRetryQueue:
    """Retry queue on a virtual millisecond clock.

    Jobs run only when the clock is advanced past their due time, in due
    order (ties in scheduling order). Jobs scheduled while advancing run in
    the same call if they fall due before the target time.

    Attributes:
        now_ms: Current virtual time.
        history: Every job ever scheduled, in scheduling order.
    """

    def __init__(self, handler: RetryHandler | None = None) -> None:
        self._handler = handler
        self._heap: list[tuple[int, int, RetryJob]] = []
        self._sequence = itertools.count()
        self.now_ms = 0
        self.history: list[ScheduledRetry] = []

    def set_handler(self, handler: RetryHandler) -> None:
        self._handler = handler

    async def schedule(self, job: RetryJob, delay_ms: int) -> None:
        due_ms = self.now_ms + delay_ms
        heapq.heappush(self._heap, (due_ms, next(self._sequence), job))
        self.history.append(ScheduledRetry(job=job, delay_ms=delay_ms, due_ms=due_ms))
        logger.debug(
            "Scheduled retry of %s %s at t=%dms",
            job.entity_type.value,
            job.entity_id,
            due_ms,
        )

    @property
    def pending(self) -> int:
        """Number of jobs not yet run."""
        return len(self._heap)

    async def advance(self, ms: int) -> None:
        """Move the clock forward, running every job that falls due."""
        target = self.now_ms + ms
        while self._heap and self._heap[0][0] <= target:
            due_ms, _, job = heapq.heappop(self._heap)
            self.now_ms = due_ms
            await _run_job(self._handler, job)
        self.now_ms = target

    async def run_until_idle(self) -> None:
        """Advance until no job is pending."""
        while self._heap:
            await self.advance(self._heap[0][0] - self.now_ms)


class AsyncioRetryQueue:
    """Retry queue using timers on the running event loop.

    Pending retries live only in this process and are dropped on close.
    """

    def __init__(self, handler: RetryHandler | None = None) -> None:
        self._handler = handler
        self._tasks: set[asyncio.Task[None]] = set()

    def set_handler(self, handler: RetryHandler) -> None:
        self._handler = handler

    async def schedule(self, job: RetryJob, delay_ms: int) -> None:
        task = asyncio.create_task(self._run_later(job, delay_ms))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_later(self, job: RetryJob, delay_ms: int) -> None:
        await asyncio.sleep(delay_ms / 1000)
        await _run_job(self._handler, job)

    async def close(self) -> None:
        if self._tasks:
            logger.warning("Dropping %d pending in-process retries", len(self._tasks))
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()


class DramatiqRetryQueue:
    """Retry queue backed by delayed Dramatiq messages.

    The worker rebuilds the coordinator and runs the job, so no handler is
    needed in the sending process.
    """

    def set_handler(self, handler: RetryHandler) -> None:
        pass

    async def schedule(self, job: RetryJob, delay_ms: int) -> None:
        # Import here to avoid circular imports
        from src.infrastructure.background.tasks.sync_retry import retry_entity_sync

        retry_entity_sync.send_with_options(
            kwargs={"job": job.model_dump(mode="json")},
            delay=delay_ms,
        )
        logger.info(
            "Queued retry of %s %s in %dms",
            job.entity_type.value,
            job.entity_id,
            delay_ms,
        )


def build_retry_queue(settings: "Settings") -> RetryQueue:
    """Create the retry queue selected by ``settings.recovery.queue_backend``."""
    if settings.recovery.queue_backend == "dramatiq":
        return DramatiqRetryQueue()
    return AsyncioRetryQueue()
