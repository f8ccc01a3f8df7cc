# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schemas for sync status, change history, notifications and retry jobs."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import ChangeType, EntityType, NotificationStatus, SyncState


class RetryJob(BaseModel):
    """Serializable description of one unit of cascade work to re-run.

    The payload is the validated update for ``change_type`` dumped in JSON
    mode, so the job can travel through a message broker.
    """

    entity_id: str
    entity_type: EntityType
    change_type: ChangeType
    program_id: str
    actor_id: str
    payload: dict[str, Any]


class SyncStatusResponse(BaseModel):
    """Propagation state of one entity."""

    model_config = ConfigDict(from_attributes=True)

    entity_id: str
    entity_type: EntityType
    status: SyncState
    last_sync_at: datetime
    error: str | None = None
    retry_count: int


class SyncStatusListResponse(BaseModel):
    """List of sync statuses."""

    items: list[SyncStatusResponse]
    total: int = Field(description="Number of returned items")


class ChangeLogResponse(BaseModel):
    """One change-history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    entity_type: EntityType
    entity_id: str
    change_type: ChangeType
    changes: dict[str, Any]
    user_id: str
    timestamp: datetime


class ChangeLogListResponse(BaseModel):
    """Change history page."""

    items: list[ChangeLogResponse]
    total: int = Field(description="Number of returned items")


class NotificationResponse(BaseModel):
    """Notification as shown in an inbox."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    entity_id: str
    details: dict[str, Any]
    sender_id: str
    title: str | None = None
    status: NotificationStatus
    created_at: datetime
    read_at: datetime | None = None


class NotificationListResponse(BaseModel):
    """Inbox listing."""

    items: list[NotificationResponse]
    total: int = Field(description="Number of returned items")


class ErrorLogResponse(BaseModel):
    """One logged propagation failure."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    entity_id: str
    entity_type: EntityType
    error_message: str
    stack_trace: str | None = None
    timestamp: datetime


class ErrorLogListResponse(BaseModel):
    """Failure history of an entity."""

    items: list[ErrorLogResponse]
    total: int = Field(description="Number of returned items")


class RecipientsAdd(BaseModel):
    """Users to add to an existing notification."""

    recipient_ids: list[str] = Field(min_length=1)
