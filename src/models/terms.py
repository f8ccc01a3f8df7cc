# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Term-system payloads.

Validation here is structural only: dates are ordered and terms follow
each other without overlapping.
"""

from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from src.models.enums import TermSystemType


class AssessmentPeriod(BaseModel):
    """Weighted assessment window inside a term."""

    name: str = Field(min_length=1, max_length=255)
    start_date: datetime
    end_date: datetime
    weight: float = Field(ge=0, description="Relative weight of the period")

    @model_validator(mode="after")
    def check_dates(self) -> Self:
        if self.start_date >= self.end_date:
            raise ValueError(f"Assessment period '{self.name}' must start before it ends")
        return self


class AcademicTerm(BaseModel):
    """A single term of the academic year."""

    name: str = Field(min_length=1, max_length=255)
    start_date: datetime
    end_date: datetime
    assessment_periods: list[AssessmentPeriod] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self) -> Self:
        if self.start_date >= self.end_date:
            raise ValueError(f"Term '{self.name}' must start before it ends")
        return self


class TermUpdate(BaseModel):
    """Replacement term system for a program."""

    type: TermSystemType = TermSystemType.TERM
    terms: list[AcademicTerm] = Field(min_length=1)

    @model_validator(mode="after")
    def check_term_order(self) -> Self:
        """Terms must be strictly ordered and must not overlap."""
        names = [term.name for term in self.terms]
        if len(set(names)) != len(names):
            raise ValueError("Term names must be unique within a term system")

        for previous, current in zip(self.terms, self.terms[1:]):
            if current.start_date < previous.end_date:
                raise ValueError(
                    f"Term '{current.name}' starts before term '{previous.name}' ends"
                )
        return self


class TermOverride(BaseModel):
    """Local deviation of one term for a class group."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    assessment_periods: list[AssessmentPeriod] | None = None

    @model_validator(mode="after")
    def check_dates(self) -> Self:
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValueError("Override must start before it ends")
        return self
