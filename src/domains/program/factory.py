# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Wiring of the cascade coordinator with its recovery policy."""

from typing import TYPE_CHECKING

from src.domains.program.coordinator import ProgramCascadeCoordinator
from src.domains.recovery.service import ErrorRecoveryService, RetryConfig
from src.infrastructure.background.retry_queue import RetryQueue
from src.infrastructure.cache import Cache
from src.infrastructure.database.connection import SessionFactory

if TYPE_CHECKING:
    from src.core.config.settings import Settings


def build_coordinator(
    settings: "Settings",
    session_factory: SessionFactory,
    retry_queue: RetryQueue,
    cache: Cache | None = None,
) -> ProgramCascadeCoordinator:
    """Create a coordinator and register it as the retry queue's handler.

    Args:
        settings: Application settings (recovery section is used).
        session_factory: Opens one transactional session per unit of work.
        retry_queue: Where failed units wait for their backoff.
        cache: Cache invalidated by term cascades.

    Returns:
        The wired coordinator.
    """
    recovery = ErrorRecoveryService(
        session_factory,
        retry_queue,
        RetryConfig.from_settings(settings.recovery),
        admin_user_ids=settings.recovery.admin_user_ids,
    )
    coordinator = ProgramCascadeCoordinator(session_factory, recovery, cache)
    retry_queue.set_handler(coordinator.retry)
    return coordinator
