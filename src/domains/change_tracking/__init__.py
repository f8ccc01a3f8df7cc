# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Change tracking domain package."""

from src.domains.change_tracking.service import (
    ChangeTrackingError,
    ChangeTrackingService,
)

__all__ = [
    "ChangeTrackingError",
    "ChangeTrackingService",
]
