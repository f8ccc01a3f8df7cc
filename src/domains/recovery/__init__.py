# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error recovery domain package."""

from src.domains.recovery.service import (
    PERMANENT_FAILURE,
    ErrorRecoveryService,
    RecoveryOutcome,
    RetryConfig,
)

__all__ = [
    "PERMANENT_FAILURE",
    "ErrorRecoveryService",
    "RecoveryOutcome",
    "RetryConfig",
]
