# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program domain package.

This package provides program configuration management including:
- Cascading term, assessment and calendar updates to class groups and classes
- Class group term customisation
- Grade projection for the supported assessment systems
"""

from src.domains.program.coordinator import (
    CascadeError,
    CascadeFailure,
    ProgramCascadeCoordinator,
    ProgramNotFoundError,
    ProgramServiceError,
)
from src.domains.program.factory import build_coordinator
from src.domains.program.grading import (
    GradeReport,
    GradeResult,
    GradingError,
    GradingNotSupportedError,
    InvalidScoreError,
    grade_for_percentage,
    grade_score,
    marks_to_percentage,
    rubric_total,
)
from src.domains.program.terms import (
    ClassGroupSettingsNotFoundError,
    InvalidTermOverrideError,
    TermCustomizationError,
    TermCustomizationService,
    TermNotFoundError,
    class_group_terms_key,
)

__all__ = [
    "CascadeError",
    "CascadeFailure",
    "ClassGroupSettingsNotFoundError",
    "GradeReport",
    "GradeResult",
    "GradingError",
    "GradingNotSupportedError",
    "InvalidScoreError",
    "InvalidTermOverrideError",
    "ProgramCascadeCoordinator",
    "ProgramNotFoundError",
    "ProgramServiceError",
    "TermCustomizationError",
    "TermCustomizationService",
    "TermNotFoundError",
    "build_coordinator",
    "class_group_terms_key",
    "grade_for_percentage",
    "grade_score",
    "marks_to_percentage",
    "rubric_total",
]
