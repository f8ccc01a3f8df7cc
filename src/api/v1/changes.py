# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Change history API endpoints.

- GET / - Recent changes across entities
- GET /{entity_id} - Change history of one entity
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth
from src.api.middleware.auth import CurrentUser
from src.domains.change_tracking.service import ChangeTrackingService
from src.models.enums import ChangeType
from src.models.sync import ChangeLogListResponse, ChangeLogResponse

router = APIRouter()


@router.get(
    "",
    response_model=ChangeLogListResponse,
    summary="List recent changes",
)
async def recent_changes(
    change_type: Annotated[ChangeType | None, Query(description="Filter by dimension")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum results")] = 20,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ChangeLogListResponse:
    """List the most recent changes."""
    entries = await ChangeTrackingService(db).recent_changes(change_type=change_type, limit=limit)
    items = [ChangeLogResponse.model_validate(entry) for entry in entries]
    return ChangeLogListResponse(items=items, total=len(items))


@router.get(
    "/{entity_id}",
    response_model=ChangeLogListResponse,
    summary="Get entity change history",
)
async def entity_history(
    entity_id: str,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum results")] = 50,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ChangeLogListResponse:
    """List the change history of an entity, newest first."""
    entries = await ChangeTrackingService(db).history(entity_id, limit=limit)
    items = [ChangeLogResponse.model_validate(entry) for entry in entries]
    return ChangeLogListResponse(items=items, total=len(items))
