# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task actors for SchoolSync.

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 2 --threads 4
"""

from src.infrastructure.background.tasks.base import run_async
from src.infrastructure.background.tasks.sync_retry import (
    get_sync_actors,
    retry_entity_sync,
)


def get_all_actors() -> list:
    """Get all registered actors for worker registration."""
    return get_sync_actors()


__all__ = [
    "get_all_actors",
    "get_sync_actors",
    "retry_entity_sync",
    "run_async",
]
