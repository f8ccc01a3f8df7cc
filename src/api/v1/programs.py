# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program configuration API endpoints.

This module provides endpoints that change a program's configuration and
cascade it to every class group and class of the program:
- POST /{program_id}/terms - Replace the term system
- POST /{program_id}/assessments - Replace the assessment system
- POST /{program_id}/calendar - Replace the calendar

and one read-only endpoint:
- POST /{program_id}/grades - Grade a score under the assessment system

A cascade that fails for some entities answers 500 with the list of
failed entities; those entities are retried in the background.
"""

import logging
from collections.abc import Awaitable

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    PROGRAM_MANAGE,
    RequirePermission,
    get_coordinator,
    get_db,
    require_auth,
)
from src.api.middleware.auth import CurrentUser
from src.domains.program.coordinator import (
    CascadeError,
    ProgramCascadeCoordinator,
    ProgramNotFoundError,
)
from src.domains.program.grading import GradingError, grade_score
from src.infrastructure.database.models import Program
from src.models.assessment import (
    AssessmentSystem,
    AssessmentUpdate,
    GradeRequest,
    GradeResponse,
    GradingSchema,
)
from src.models.calendar import CalendarUpdate
from src.models.program import CascadeFailureResponse, ProgramResponse
from src.models.terms import TermUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

_assessment_system = TypeAdapter(AssessmentSystem)


async def _run_cascade(cascade: Awaitable[Program]) -> ProgramResponse:
    """Await a cascade and translate its errors to HTTP responses."""
    try:
        program = await cascade
    except ProgramNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except CascadeError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=CascadeFailureResponse(
                detail=str(e),
                program_id=e.program_id,
                failed_entities=[failure.as_dict() for failure in e.failures],
            ).model_dump(),
        )
    return ProgramResponse.model_validate(program)


@router.post(
    "/{program_id}/terms",
    response_model=ProgramResponse,
    summary="Update program terms",
    description="Replace the term system and cascade it to class groups and classes.",
)
async def update_terms(
    program_id: str,
    data: TermUpdate,
    current_user: CurrentUser = Depends(RequirePermission(PROGRAM_MANAGE)),
    coordinator: ProgramCascadeCoordinator = Depends(get_coordinator),
) -> ProgramResponse:
    """Replace the program's term system."""
    logger.info("Term update for program %s by %s", program_id, current_user.id)
    return await _run_cascade(
        coordinator.cascade_term_updates(program_id, data, current_user.id)
    )


@router.post(
    "/{program_id}/assessments",
    response_model=ProgramResponse,
    summary="Update program assessment system",
    description="Replace the assessment system and cascade it to class groups and classes.",
)
async def update_assessments(
    program_id: str,
    data: AssessmentUpdate,
    current_user: CurrentUser = Depends(RequirePermission(PROGRAM_MANAGE)),
    coordinator: ProgramCascadeCoordinator = Depends(get_coordinator),
) -> ProgramResponse:
    """Replace the program's assessment system and grading schema."""
    logger.info("Assessment update for program %s by %s", program_id, current_user.id)
    return await _run_cascade(
        coordinator.cascade_assessment_updates(program_id, data, current_user.id)
    )


@router.post(
    "/{program_id}/calendar",
    response_model=ProgramResponse,
    summary="Update program calendar",
    description="Replace the calendar and cascade it to class groups and classes.",
)
async def update_calendar(
    program_id: str,
    data: CalendarUpdate,
    current_user: CurrentUser = Depends(RequirePermission(PROGRAM_MANAGE)),
    coordinator: ProgramCascadeCoordinator = Depends(get_coordinator),
) -> ProgramResponse:
    """Replace the program's calendar."""
    logger.info("Calendar update for program %s by %s", program_id, current_user.id)
    return await _run_cascade(
        coordinator.cascade_calendar_updates(program_id, data, current_user.id)
    )


@router.post(
    "/{program_id}/grades",
    response_model=GradeResponse,
    summary="Grade a score",
    description="Grade marks, criterion scores or a percentage under the program's assessment system.",
)
async def grade(
    program_id: str,
    data: GradeRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> GradeResponse:
    """Grade a score with the program's assessment system and grading schema."""
    program = await db.get(Program, program_id)
    if program is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Program not found: {program_id}",
        )
    if program.assessment_system is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Program {program_id} has no assessment system",
        )

    system = _assessment_system.validate_python(program.assessment_system)
    schema = GradingSchema.model_validate(program.grading_schema or {})
    try:
        report = grade_score(system, data, schema)
    except GradingError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    return GradeResponse(
        percentage=report.percentage,
        grade=report.grade,
        points=report.points,
        passed=report.passed,
    )
