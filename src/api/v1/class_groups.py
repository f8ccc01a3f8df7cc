# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class group term endpoints.

- GET /{class_group_id}/terms - Effective terms (baseline plus overrides)
- PUT /{class_group_id}/terms/{term_name} - Override one term locally
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    PROGRAM_MANAGE,
    RequirePermission,
    get_cache,
    get_db,
    require_auth,
)
from src.api.middleware.auth import CurrentUser
from src.domains.program.terms import (
    ClassGroupSettingsNotFoundError,
    InvalidTermOverrideError,
    TermCustomizationService,
    TermNotFoundError,
)
from src.infrastructure.cache import Cache
from src.models.terms import AcademicTerm, TermOverride

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession, cache: Cache | None) -> TermCustomizationService:
    return TermCustomizationService(db=db, cache=cache)


@router.get(
    "/{class_group_id}/terms",
    response_model=list[AcademicTerm],
    summary="Get class group terms",
)
async def get_terms(
    class_group_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    cache: Cache | None = Depends(get_cache),
) -> list[AcademicTerm]:
    """Return the class group's effective terms."""
    try:
        return await _get_service(db, cache).get_class_group_terms(class_group_id)
    except ClassGroupSettingsNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTermOverrideError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put(
    "/{class_group_id}/terms/{term_name}",
    response_model=AcademicTerm,
    summary="Customise a class group term",
)
async def customize_term(
    class_group_id: str,
    term_name: str,
    data: TermOverride,
    current_user: CurrentUser = Depends(RequirePermission(PROGRAM_MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache | None = Depends(get_cache),
) -> AcademicTerm:
    """Store a local override for one term."""
    try:
        return await _get_service(db, cache).customize_class_group_term(
            class_group_id, term_name, data
        )
    except (ClassGroupSettingsNotFoundError, TermNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTermOverrideError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
