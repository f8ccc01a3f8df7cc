# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade projection for the supported assessment systems."""

from dataclasses import dataclass
from typing import Mapping, TypeVar, assert_never

from src.models.assessment import (
    CGPA,
    GradeBand,
    GradeRequest,
    GradingSchema,
    MarkingScheme,
    Rubric,
)

FALLBACK_GRADE = "F"

B = TypeVar("B", bound=GradeBand)


class GradingError(Exception):
    """Base exception for grading errors."""

    pass


class GradingNotSupportedError(GradingError):
    """Raised when an assessment system has no percentage grading."""

    pass


class InvalidScoreError(GradingError):
    """Raised for scores outside the valid range."""

    pass


@dataclass(frozen=True)
class GradeResult:
    """Letter grade with grade points where the system defines them."""

    grade: str
    points: float | None = None


def _find_band(bands: list[B], percentage: float) -> B | None:
    matching = [b for b in bands if b.min_percentage <= percentage <= b.max_percentage]
    if not matching:
        return None
    # Overlapping bands resolve to the highest one
    return max(matching, key=lambda b: b.min_percentage)


def grade_for_percentage(
    system: MarkingScheme | Rubric | CGPA,
    percentage: float,
) -> GradeResult:
    """Map a percentage to a grade under an assessment system.

    Raises:
        InvalidScoreError: If the percentage is outside 0..100.
        GradingNotSupportedError: For rubric systems.
    """
    if not 0 <= percentage <= 100:
        raise InvalidScoreError(f"Percentage {percentage} is outside 0..100")

    match system:
        case MarkingScheme():
            band = _find_band(system.grading_scale, percentage)
            return GradeResult(grade=band.grade if band else FALLBACK_GRADE)
        case CGPA():
            point = _find_band(system.grade_points, percentage)
            if point is None:
                return GradeResult(grade=FALLBACK_GRADE, points=0.0)
            return GradeResult(grade=point.grade, points=point.points)
        case Rubric():
            raise GradingNotSupportedError("Rubric assessments are scored per criterion")
        case _:
            assert_never(system)


def marks_to_percentage(scheme: MarkingScheme, marks: float) -> float:
    """Convert raw marks to a percentage of the scheme's maximum."""
    if not 0 <= marks <= scheme.max_marks:
        raise InvalidScoreError(f"Marks {marks} outside 0..{scheme.max_marks}")
    return marks / scheme.max_marks * 100


def rubric_total(rubric: Rubric, criterion_scores: Mapping[str, float]) -> float:
    """Weighted rubric total as a percentage.

    Each criterion contributes ``weight * score / best_level_score``; the sum
    is normalised by the total weight. Unscored criteria count as zero.

    Raises:
        InvalidScoreError: For unknown criteria or out-of-range scores.
    """
    criteria = {criterion.name: criterion for criterion in rubric.criteria}
    unknown = set(criterion_scores) - set(criteria)
    if unknown:
        raise InvalidScoreError(f"Unknown rubric criteria: {', '.join(sorted(unknown))}")

    total_weight = sum(criterion.weight for criterion in rubric.criteria)
    weighted = 0.0
    for name, score in criterion_scores.items():
        criterion = criteria[name]
        best = max(level.score for level in criterion.levels)
        if not 0 <= score <= best:
            raise InvalidScoreError(f"Score {score} for '{name}' outside 0..{best}")
        if best > 0:
            weighted += criterion.weight * score / best

    return weighted / total_weight * 100


@dataclass(frozen=True)
class GradeReport:
    """Outcome of grading one score under a program's configuration."""

    percentage: float
    passed: bool
    grade: str | None = None
    points: float | None = None


def grade_score(
    system: MarkingScheme | Rubric | CGPA,
    score: GradeRequest,
    schema: GradingSchema | None = None,
) -> GradeReport:
    """Grade a score under an assessment system and grading schema.

    The score is first turned into a percentage: marks through the marking
    scheme, criterion scores through the rubric. The percentage is rounded to
    the schema's decimal places and compared with its passing percentage.
    Rubrics have no grade bands, so their report carries no grade.

    Args:
        system: The program's assessment system.
        score: Exactly one of percentage, marks or criterion scores.
        schema: Reporting rules; defaults to a 50% pass mark.

    Returns:
        GradeReport with the percentage, pass flag and grade where defined.

    Raises:
        GradingNotSupportedError: If the score kind does not fit the system.
        InvalidScoreError: For out-of-range scores.
    """
    schema = schema or GradingSchema()

    match system:
        case MarkingScheme():
            if score.criterion_scores is not None:
                raise GradingNotSupportedError("Marking schemes take marks or a percentage")
            if score.marks is not None:
                percentage = marks_to_percentage(system, score.marks)
            else:
                percentage = score.percentage
        case Rubric():
            if score.criterion_scores is None:
                raise GradingNotSupportedError("Rubric assessments are scored per criterion")
            percentage = rubric_total(system, score.criterion_scores)
        case CGPA():
            if score.percentage is None:
                raise GradingNotSupportedError("CGPA grades take a percentage")
            percentage = score.percentage
        case _:
            assert_never(system)

    percentage = round(percentage, schema.decimal_places)
    passed = percentage >= schema.passing_percentage
    if isinstance(system, Rubric):
        return GradeReport(percentage=percentage, passed=passed)

    result = grade_for_percentage(system, percentage)
    return GradeReport(
        percentage=percentage,
        passed=passed,
        grade=result.grade if schema.show_letter_grade else None,
        points=result.points,
    )
