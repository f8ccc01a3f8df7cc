# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic schemas shared by the services and the API layer."""

from src.models.assessment import (
    CGPA,
    AssessmentSystem,
    AssessmentUpdate,
    GradeBand,
    GradePoint,
    GradingSchema,
    MarkingScheme,
    Rubric,
    RubricCriterion,
    RubricLevel,
)
from src.models.calendar import CalendarEvent, CalendarUpdate, ScheduleSettings
from src.models.enums import (
    ChangeType,
    EntityType,
    NotificationStatus,
    NotificationType,
    ProgramStatus,
    SyncState,
    TermSystemType,
)
from src.models.program import CascadeFailureResponse, ProgramResponse
from src.models.sync import (
    ChangeLogListResponse,
    ChangeLogResponse,
    NotificationListResponse,
    NotificationResponse,
    RetryJob,
    SyncStatusListResponse,
    SyncStatusResponse,
)
from src.models.terms import AcademicTerm, AssessmentPeriod, TermOverride, TermUpdate

__all__ = [
    # Enums
    "ChangeType",
    "EntityType",
    "NotificationStatus",
    "NotificationType",
    "ProgramStatus",
    "SyncState",
    "TermSystemType",
    # Terms
    "AcademicTerm",
    "AssessmentPeriod",
    "TermOverride",
    "TermUpdate",
    # Assessment
    "AssessmentSystem",
    "AssessmentUpdate",
    "CGPA",
    "GradeBand",
    "GradePoint",
    "GradingSchema",
    "MarkingScheme",
    "Rubric",
    "RubricCriterion",
    "RubricLevel",
    # Calendar
    "CalendarEvent",
    "CalendarUpdate",
    "ScheduleSettings",
    # Responses
    "CascadeFailureResponse",
    "ProgramResponse",
    "ChangeLogListResponse",
    "ChangeLogResponse",
    "NotificationListResponse",
    "NotificationResponse",
    "RetryJob",
    "SyncStatusListResponse",
    "SyncStatusResponse",
]
