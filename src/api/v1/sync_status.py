# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sync status API endpoints.

- GET /failed - Entities whose propagation failed
- GET /{entity_id} - Propagation state of one entity
- GET /{entity_id}/errors - Logged failures of one entity, newest first
- POST /{entity_id}/reset - Make a failed entity retryable again

All endpoints require the ``sync:admin`` permission.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import SYNC_ADMIN, RequirePermission, get_db, get_recovery
from src.api.middleware.auth import CurrentUser
from src.domains.recovery.service import ErrorRecoveryService
from src.domains.sync_status.service import SyncStatusNotFoundError, SyncStatusService
from src.models.sync import (
    ErrorLogListResponse,
    ErrorLogResponse,
    SyncStatusListResponse,
    SyncStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/failed",
    response_model=SyncStatusListResponse,
    summary="List failed entities",
)
async def list_failed(
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum results")] = 50,
    current_user: CurrentUser = Depends(RequirePermission(SYNC_ADMIN)),
    db: AsyncSession = Depends(get_db),
) -> SyncStatusListResponse:
    """List entities whose last attempt failed, newest first."""
    statuses = await SyncStatusService(db).list_failed(limit=limit)
    items = [SyncStatusResponse.model_validate(s) for s in statuses]
    return SyncStatusListResponse(items=items, total=len(items))


@router.get(
    "/{entity_id}",
    response_model=SyncStatusResponse,
    summary="Get sync status",
)
async def get_sync_status(
    entity_id: str,
    current_user: CurrentUser = Depends(RequirePermission(SYNC_ADMIN)),
    db: AsyncSession = Depends(get_db),
) -> SyncStatusResponse:
    """Get the propagation state of an entity."""
    sync_status = await SyncStatusService(db).read(entity_id)
    if sync_status is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No sync status for entity {entity_id}",
        )
    return SyncStatusResponse.model_validate(sync_status)


@router.get(
    "/{entity_id}/errors",
    response_model=ErrorLogListResponse,
    summary="Get error history",
)
async def get_error_history(
    entity_id: str,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum results")] = 50,
    current_user: CurrentUser = Depends(RequirePermission(SYNC_ADMIN)),
    recovery: ErrorRecoveryService = Depends(get_recovery),
) -> ErrorLogListResponse:
    """List the logged failures of an entity, newest first."""
    errors = await recovery.error_history(entity_id, limit=limit)
    items = [ErrorLogResponse.model_validate(e) for e in errors]
    return ErrorLogListResponse(items=items, total=len(items))


@router.post(
    "/{entity_id}/reset",
    response_model=SyncStatusResponse,
    summary="Reset retries",
)
async def reset_retries(
    entity_id: str,
    current_user: CurrentUser = Depends(RequirePermission(SYNC_ADMIN)),
    db: AsyncSession = Depends(get_db),
) -> SyncStatusResponse:
    """Reset the retry counter of an entity."""
    try:
        sync_status = await SyncStatusService(db).reset_retries(entity_id)
    except SyncStatusNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    logger.info("Retries reset for %s by %s", entity_id, current_user.id)
    return SyncStatusResponse.model_validate(sync_status)
