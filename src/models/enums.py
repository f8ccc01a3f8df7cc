# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations for programs, cascades and notifications."""

from enum import Enum


class ProgramStatus(str, Enum):
    """Lifecycle status of a program."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class EntityType(str, Enum):
    """Entities that take part in a cascade."""

    PROGRAM = "PROGRAM"
    CLASS_GROUP = "CLASS_GROUP"
    CLASS = "CLASS"


class ChangeType(str, Enum):
    """Configuration dimension changed by a cascade."""

    TERM = "TERM"
    ASSESSMENT = "ASSESSMENT"
    CALENDAR = "CALENDAR"


class SyncState(str, Enum):
    """Outcome of the most recent cascade attempt for an entity."""

    SYNCED = "SYNCED"
    PENDING = "PENDING"
    FAILED = "FAILED"


class NotificationType(str, Enum):
    """Notification categories."""

    TERM_UPDATE = "TERM_UPDATE"
    ASSESSMENT_UPDATE = "ASSESSMENT_UPDATE"
    CALENDAR_UPDATE = "CALENDAR_UPDATE"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    ASSIGNMENT = "ASSIGNMENT"
    GRADE = "GRADE"
    REMINDER = "REMINDER"
    SYSTEM = "SYSTEM"

    @classmethod
    def for_change(cls, change_type: ChangeType) -> "NotificationType":
        """Map a cascade dimension to its update notification type."""
        return {
            ChangeType.TERM: cls.TERM_UPDATE,
            ChangeType.ASSESSMENT: cls.ASSESSMENT_UPDATE,
            ChangeType.CALENDAR: cls.CALENDAR_UPDATE,
        }[change_type]


class NotificationStatus(str, Enum):
    """Read state of a notification."""

    UNREAD = "UNREAD"
    READ = "READ"


class TermSystemType(str, Enum):
    """How a program divides the academic year."""

    SEMESTER = "SEMESTER"
    TRIMESTER = "TRIMESTER"
    QUARTER = "QUARTER"
    TERM = "TERM"
