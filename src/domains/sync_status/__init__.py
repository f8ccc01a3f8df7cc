# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sync status domain package."""

from src.domains.sync_status.service import (
    SyncStatusNotFoundError,
    SyncStatusService,
    SyncStatusServiceError,
)

__all__ = [
    "SyncStatusNotFoundError",
    "SyncStatusService",
    "SyncStatusServiceError",
]
