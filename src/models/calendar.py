# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Calendar payloads."""

from datetime import datetime, time
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator


class CalendarEvent(BaseModel):
    """Dated event on the program calendar (holiday, exam week, ...)."""

    title: str = Field(min_length=1, max_length=255)
    start_date: datetime
    end_date: datetime
    type: str = Field(min_length=1, max_length=50)
    details: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_dates(self) -> Self:
        if self.start_date > self.end_date:
            raise ValueError(f"Event '{self.title}' ends before it starts")
        return self


class ScheduleSettings(BaseModel):
    """Daily timetable frame."""

    working_days: list[int] = Field(
        default_factory=lambda: [0, 1, 2, 3, 4],
        description="ISO weekdays starting at Monday=0",
    )
    day_start: time = time(8, 0)
    day_end: time = time(15, 0)
    period_minutes: int = Field(default=45, gt=0, le=240)

    @field_validator("working_days")
    @classmethod
    def check_working_days(cls, value: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("Working days must be between 0 (Monday) and 6 (Sunday)")
        return sorted(set(value))

    @model_validator(mode="after")
    def check_day_bounds(self) -> Self:
        if self.day_start >= self.day_end:
            raise ValueError("School day must start before it ends")
        return self


class CalendarUpdate(BaseModel):
    """Replacement calendar for a program."""

    events: list[CalendarEvent] = Field(default_factory=list)
    schedule_settings: ScheduleSettings = Field(default_factory=ScheduleSettings)
