# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification API endpoints.

- GET /unread - Unread notifications of the current user
- GET /entity/{entity_id} - Notifications about an entity
- POST /{notification_id}/read - Mark a notification read
- POST /{notification_id}/recipients - Address a notification to more users (sync:admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import SYNC_ADMIN, RequirePermission, get_db, require_auth
from src.api.middleware.auth import CurrentUser
from src.infrastructure.notifications.service import (
    NotificationNotFoundError,
    NotificationService,
)
from src.models.sync import NotificationListResponse, NotificationResponse, RecipientsAdd

router = APIRouter()


@router.get(
    "/unread",
    response_model=NotificationListResponse,
    summary="List unread notifications",
)
async def list_unread(
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum results")] = 50,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    """List unread notifications addressed to the current user."""
    notifications = await NotificationService(db).list_unread(current_user.id, limit=limit)
    items = [NotificationResponse.model_validate(n) for n in notifications]
    return NotificationListResponse(items=items, total=len(items))


@router.get(
    "/entity/{entity_id}",
    response_model=NotificationListResponse,
    summary="List notifications about an entity",
)
async def list_for_entity(
    entity_id: str,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum results")] = 50,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    """List notifications emitted for an entity."""
    notifications = await NotificationService(db).list_for_entity(entity_id, limit=limit)
    items = [NotificationResponse.model_validate(n) for n in notifications]
    return NotificationListResponse(items=items, total=len(items))


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark notification read",
)
async def mark_read(
    notification_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    """Mark a notification read for the current user."""
    try:
        notification = await NotificationService(db).mark_read(
            notification_id, recipient_id=current_user.id
        )
    except NotificationNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    return NotificationResponse.model_validate(notification)


@router.post(
    "/{notification_id}/recipients",
    response_model=NotificationResponse,
    summary="Add notification recipients",
)
async def add_recipients(
    notification_id: str,
    data: RecipientsAdd,
    current_user: CurrentUser = Depends(RequirePermission(SYNC_ADMIN)),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    """Address an existing notification to more users."""
    try:
        notification = await NotificationService(db).add_recipients(
            notification_id, data.recipient_ids
        )
    except NotificationNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    return NotificationResponse.model_validate(notification)
