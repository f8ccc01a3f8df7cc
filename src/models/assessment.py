# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment-system payloads.

An assessment system is one of three kinds, discriminated by ``kind``:
- marking_scheme: raw marks mapped through a grading scale
- rubric: weighted criteria, each with scored levels
- cgpa: percentage bands mapped to grade points
"""

from typing import Annotated, Literal, Self, Union

from pydantic import BaseModel, Field, model_validator


class GradeBand(BaseModel):
    """Percentage range mapped to a letter grade."""

    grade: str = Field(min_length=1, max_length=10)
    min_percentage: float = Field(ge=0, le=100)
    max_percentage: float = Field(ge=0, le=100)

    @model_validator(mode="after")
    def check_range(self) -> Self:
        if self.min_percentage > self.max_percentage:
            raise ValueError(f"Grade band '{self.grade}' has min above max")
        return self


class MarkingScheme(BaseModel):
    """Raw marks plus a grading scale."""

    kind: Literal["marking_scheme"] = "marking_scheme"
    name: str = "Default marking scheme"
    max_marks: float = Field(gt=0)
    passing_marks: float = Field(ge=0)
    grading_scale: list[GradeBand] = Field(min_length=1)

    @model_validator(mode="after")
    def check_marks(self) -> Self:
        if self.passing_marks > self.max_marks:
            raise ValueError("Passing marks cannot exceed maximum marks")
        return self


class RubricLevel(BaseModel):
    """One achievement level of a rubric criterion."""

    name: str = Field(min_length=1)
    score: float = Field(ge=0)
    description: str | None = None


class RubricCriterion(BaseModel):
    """Weighted rubric criterion."""

    name: str = Field(min_length=1)
    weight: float = Field(gt=0)
    description: str | None = None
    levels: list[RubricLevel] = Field(min_length=1)


class Rubric(BaseModel):
    """Criteria-based assessment."""

    kind: Literal["rubric"] = "rubric"
    name: str = "Default rubric"
    criteria: list[RubricCriterion] = Field(min_length=1)

    @model_validator(mode="after")
    def check_unique_criteria(self) -> Self:
        names = [criterion.name for criterion in self.criteria]
        if len(set(names)) != len(names):
            raise ValueError("Rubric criteria names must be unique")
        return self


class GradePoint(GradeBand):
    """Grade band carrying a grade-point value."""

    points: float = Field(ge=0)


class CGPA(BaseModel):
    """Cumulative grade point average system."""

    kind: Literal["cgpa"] = "cgpa"
    scale_max: float = Field(default=4.0, gt=0)
    grade_points: list[GradePoint] = Field(min_length=1)

    @model_validator(mode="after")
    def check_points(self) -> Self:
        for band in self.grade_points:
            if band.points > self.scale_max:
                raise ValueError(f"Grade '{band.grade}' exceeds the {self.scale_max} scale")
        return self


AssessmentSystem = Annotated[
    Union[MarkingScheme, Rubric, CGPA],
    Field(discriminator="kind"),
]


class GradingSchema(BaseModel):
    """How computed scores are reported."""

    passing_percentage: float = Field(default=50.0, ge=0, le=100)
    decimal_places: int = Field(default=2, ge=0, le=4)
    show_letter_grade: bool = True


class AssessmentUpdate(BaseModel):
    """Replacement assessment system for a program."""

    assessment_system: AssessmentSystem
    grading_schema: GradingSchema = Field(default_factory=GradingSchema)


class GradeRequest(BaseModel):
    """Score to grade under a program's assessment system.

    Exactly one of ``percentage``, ``marks`` or ``criterion_scores`` is set:
    marks for marking schemes, criterion scores for rubrics and a percentage
    for marking schemes or CGPA tables.
    """

    percentage: float | None = None
    marks: float | None = None
    criterion_scores: dict[str, float] | None = None

    @model_validator(mode="after")
    def validate_single_score(self) -> Self:
        """Ensure exactly one kind of score is given."""
        given = [
            name
            for name in ("percentage", "marks", "criterion_scores")
            if getattr(self, name) is not None
        ]
        if len(given) != 1:
            raise ValueError("Provide exactly one of percentage, marks or criterion_scores")
        return self


class GradeResponse(BaseModel):
    """Graded score."""

    percentage: float
    grade: str | None = None
    points: float | None = None
    passed: bool
