# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for grade projection."""

import pytest
from pydantic import ValidationError

from src.domains.program.grading import (
    FALLBACK_GRADE,
    GradeReport,
    GradeResult,
    GradingNotSupportedError,
    InvalidScoreError,
    grade_for_percentage,
    grade_score,
    marks_to_percentage,
    rubric_total,
)
from src.models.assessment import CGPA, GradeRequest, GradingSchema, MarkingScheme, Rubric


@pytest.fixture
def marking_scheme() -> MarkingScheme:
    """Marking scheme out of 50 marks."""
    return MarkingScheme.model_validate(
        {
            "max_marks": 50,
            "passing_marks": 20,
            "grading_scale": [
                {"grade": "A", "min_percentage": 80, "max_percentage": 100},
                {"grade": "B", "min_percentage": 60, "max_percentage": 80},
                {"grade": "C", "min_percentage": 40, "max_percentage": 60},
            ],
        }
    )


@pytest.fixture
def cgpa() -> CGPA:
    """Four-point CGPA table."""
    return CGPA.model_validate(
        {
            "scale_max": 4.0,
            "grade_points": [
                {"grade": "A", "min_percentage": 85, "max_percentage": 100, "points": 4.0},
                {"grade": "B", "min_percentage": 70, "max_percentage": 84.99, "points": 3.0},
                {"grade": "C", "min_percentage": 55, "max_percentage": 69.99, "points": 2.0},
            ],
        }
    )


@pytest.fixture
def rubric() -> Rubric:
    """Two-criterion rubric weighted 3:1."""
    return Rubric.model_validate(
        {
            "criteria": [
                {
                    "name": "Content",
                    "weight": 3,
                    "levels": [
                        {"name": "Novice", "score": 1},
                        {"name": "Expert", "score": 4},
                    ],
                },
                {
                    "name": "Style",
                    "weight": 1,
                    "levels": [
                        {"name": "Weak", "score": 0},
                        {"name": "Strong", "score": 2},
                    ],
                },
            ]
        }
    )


class TestMarkingScheme:
    """Tests for marking-scheme grading."""

    @pytest.mark.parametrize(
        "percentage,grade",
        [(100, "A"), (85, "A"), (65, "B"), (40, "C"), (39.9, FALLBACK_GRADE), (0, FALLBACK_GRADE)],
    )
    def test_bands(self, marking_scheme: MarkingScheme, percentage: float, grade: str) -> None:
        """Test that percentages fall into the expected band."""
        assert grade_for_percentage(marking_scheme, percentage) == GradeResult(grade=grade)

    def test_shared_boundary_picks_higher_band(self, marking_scheme: MarkingScheme) -> None:
        """Test that a percentage on two bands gets the higher grade."""
        assert grade_for_percentage(marking_scheme, 80).grade == "A"

    def test_marks_to_percentage(self, marking_scheme: MarkingScheme) -> None:
        """Test raw marks conversion."""
        assert marks_to_percentage(marking_scheme, 35) == 70

    def test_marks_out_of_range(self, marking_scheme: MarkingScheme) -> None:
        """Test that marks above the maximum are rejected."""
        with pytest.raises(InvalidScoreError):
            marks_to_percentage(marking_scheme, 51)


class TestCGPA:
    """Tests for CGPA grading."""

    def test_grade_points(self, cgpa: CGPA) -> None:
        """Test that a band yields its grade points."""
        assert grade_for_percentage(cgpa, 72) == GradeResult(grade="B", points=3.0)

    def test_below_table(self, cgpa: CGPA) -> None:
        """Test that percentages below every band score zero points."""
        assert grade_for_percentage(cgpa, 30) == GradeResult(grade=FALLBACK_GRADE, points=0.0)


class TestRubric:
    """Tests for rubric scoring."""

    def test_percentage_grading_not_supported(self, rubric: Rubric) -> None:
        """Test that rubrics have no percentage bands."""
        with pytest.raises(GradingNotSupportedError):
            grade_for_percentage(rubric, 50)

    def test_weighted_total(self, rubric: Rubric) -> None:
        """Test the weighted rubric total."""
        # (3 * 2/4 + 1 * 2/2) / 4 = 0.625
        assert rubric_total(rubric, {"Content": 2, "Style": 2}) == pytest.approx(62.5)

    def test_unscored_criteria_count_zero(self, rubric: Rubric) -> None:
        """Test that missing criteria contribute nothing."""
        assert rubric_total(rubric, {"Content": 4}) == pytest.approx(75.0)

    def test_unknown_criterion(self, rubric: Rubric) -> None:
        """Test that unknown criteria are rejected."""
        with pytest.raises(InvalidScoreError, match="Unknown rubric criteria"):
            rubric_total(rubric, {"Grammar": 1})

    def test_score_above_best_level(self, rubric: Rubric) -> None:
        """Test that scores above the best level are rejected."""
        with pytest.raises(InvalidScoreError):
            rubric_total(rubric, {"Style": 3})


@pytest.mark.parametrize("percentage", [-1, 100.5])
def test_percentage_out_of_range(marking_scheme: MarkingScheme, percentage: float) -> None:
    """Test that percentages outside 0..100 are rejected."""
    with pytest.raises(InvalidScoreError):
        grade_for_percentage(marking_scheme, percentage)


class TestGradeScore:
    """Tests for grade_score."""

    def test_marks_under_marking_scheme(self, marking_scheme: MarkingScheme) -> None:
        """Test that marks are converted and graded."""
        report = grade_score(marking_scheme, GradeRequest(marks=35))

        assert report == GradeReport(percentage=70.0, passed=True, grade="B")

    def test_percentage_under_cgpa(self, cgpa: CGPA) -> None:
        """Test that CGPA reports carry grade points."""
        report = grade_score(cgpa, GradeRequest(percentage=90))

        assert report == GradeReport(percentage=90.0, passed=True, grade="A", points=4.0)

    def test_rubric_report_has_no_grade(self, rubric: Rubric) -> None:
        """Test that rubric scores yield a percentage only."""
        report = grade_score(
            rubric,
            GradeRequest(criterion_scores={"Content": 2, "Style": 2}),
            GradingSchema(passing_percentage=70),
        )

        assert report == GradeReport(percentage=62.5, passed=False)

    def test_schema_rounding_and_letter_grade(self, marking_scheme: MarkingScheme) -> None:
        """Test that the grading schema rounds and hides the letter grade."""
        schema = GradingSchema(decimal_places=1, show_letter_grade=False)

        report = grade_score(marking_scheme, GradeRequest(marks=33), schema)

        assert report.percentage == 66.0
        assert report.grade is None

    def test_below_passing_percentage(self, marking_scheme: MarkingScheme) -> None:
        """Test that the pass flag follows the schema's passing percentage."""
        report = grade_score(marking_scheme, GradeRequest(percentage=45))

        assert report.passed is False
        assert report.grade == "C"

    @pytest.mark.parametrize(
        "system_name,score",
        [
            ("marking_scheme", GradeRequest(criterion_scores={"Content": 1})),
            ("rubric", GradeRequest(percentage=50)),
            ("cgpa", GradeRequest(marks=10)),
        ],
    )
    def test_score_kind_must_fit_system(
        self, request: pytest.FixtureRequest, system_name: str, score: GradeRequest
    ) -> None:
        """Test that a score of the wrong kind is rejected."""
        system = request.getfixturevalue(system_name)

        with pytest.raises(GradingNotSupportedError):
            grade_score(system, score)

    def test_marks_out_of_range(self, marking_scheme: MarkingScheme) -> None:
        """Test that invalid marks propagate the score error."""
        with pytest.raises(InvalidScoreError):
            grade_score(marking_scheme, GradeRequest(marks=60))


@pytest.mark.parametrize(
    "payload",
    [{}, {"percentage": 50, "marks": 10}],
)
def test_grade_request_needs_one_score(payload: dict) -> None:
    """Test that a grade request carries exactly one kind of score."""
    with pytest.raises(ValidationError):
        GradeRequest.model_validate(payload)
