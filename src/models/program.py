# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program request and response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import ProgramStatus


class ProgramResponse(BaseModel):
    """Program record returned after a cascade."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    status: ProgramStatus
    term_system: dict[str, Any] | None = None
    assessment_system: dict[str, Any] | None = None
    grading_schema: dict[str, Any] | None = None
    calendar: dict[str, Any] | None = None
    updated_at: datetime | None = None


class CascadeFailureResponse(BaseModel):
    """Body returned when a cascade did not fully propagate."""

    detail: str
    program_id: str
    failed_entities: list[dict[str, str]] = Field(default_factory=list)
