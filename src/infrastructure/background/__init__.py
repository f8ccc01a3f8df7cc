# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task infrastructure module for SchoolSync.

Provides delayed retries for failed cascade units:
- Retry queues (in-memory, asyncio timers, Dramatiq delayed messages)
- Dramatiq broker with Redis for durable retries

Quick Start:
    from src.infrastructure.background import setup_dramatiq
    setup_dramatiq()

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 2 --threads 4
"""

from src.infrastructure.background.broker import (
    BrokerManager,
    Priority,
    Queues,
    get_broker,
    get_broker_manager,
    setup_dramatiq,
    shutdown_dramatiq,
)
from src.infrastructure.background.retry_queue import (
    AsyncioRetryQueue,
    DramatiqRetryQueue,
    InMemoryRetryQueue,
    RetryHandler,
    RetryQueue,
    ScheduledRetry,
    build_retry_queue,
)

# Task actors are imported lazily to avoid circular imports
# Use: from src.infrastructure.background.tasks import retry_entity_sync

__all__ = [
    # Broker
    "BrokerManager",
    "Priority",
    "Queues",
    "get_broker",
    "get_broker_manager",
    "setup_dramatiq",
    "shutdown_dramatiq",
    # Retry queues
    "AsyncioRetryQueue",
    "DramatiqRetryQueue",
    "InMemoryRetryQueue",
    "RetryHandler",
    "RetryQueue",
    "ScheduledRetry",
    "build_retry_queue",
]
