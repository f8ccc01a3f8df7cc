# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for SchoolSync.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.base import Base, JSONType, TimestampMixin, new_uuid
from src.infrastructure.database.models.notification import Notification, NotificationRecipient
from src.infrastructure.database.models.program import (
    Class,
    ClassGroup,
    ClassGroupSettings,
    ClassSettings,
    Program,
)
from src.infrastructure.database.models.sync import ChangeLog, ErrorLog, SyncStatus

__all__ = [
    "Base",
    "JSONType",
    "TimestampMixin",
    "new_uuid",
    # Program structure
    "Program",
    "ClassGroup",
    "ClassGroupSettings",
    "Class",
    "ClassSettings",
    # Audit and sync
    "ChangeLog",
    "SyncStatus",
    "ErrorLog",
    # Notifications
    "Notification",
    "NotificationRecipient",
]
