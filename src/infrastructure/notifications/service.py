# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service for in-app notifications.

This service handles the notification flow:
1. Persisting a notification for an affected entity
2. Addressing it to recipients
3. Marking it read
4. Listing a user's unread inbox

Notifications are durable facts. Emission never depends on delivery to any
channel; an unaddressed notification is still recorded against its entity.
"""

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import Notification, NotificationRecipient
from src.models.enums import NotificationStatus, NotificationType
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class NotificationServiceError(Exception):
    """Base exception for notification errors."""

    pass


class NotificationNotFoundError(NotificationServiceError):
    """Raised when a notification does not exist."""

    pass


class NotificationService:
    """Service emitting and reading notifications.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the notification service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def emit(
        self,
        entity_id: str,
        type: NotificationType,
        details: dict[str, Any],
        sender_id: str,
        title: str | None = None,
        recipient_ids: Iterable[str] = (),
    ) -> Notification:
        """Persist a new unread notification.

        Args:
            entity_id: Entity the notification is about.
            type: Notification category.
            details: JSON-serializable payload.
            sender_id: User (or system actor) that caused it.
            title: Optional human-readable title.
            recipient_ids: Users to address it to. Duplicates are ignored.

        Returns:
            The stored notification.
        """
        notification = Notification(
            type=type.value,
            entity_id=entity_id,
            details=details,
            sender_id=sender_id,
            title=title,
            status=NotificationStatus.UNREAD.value,
        )
        notification.recipients = [
            NotificationRecipient(recipient_id=recipient_id)
            for recipient_id in dict.fromkeys(recipient_ids)
        ]
        self.db.add(notification)
        await self.db.flush()

        logger.debug(
            "Emitted %s notification %s for entity %s (%d recipients)",
            type.value,
            notification.id,
            entity_id,
            len(notification.recipients),
        )
        return notification

    async def get(self, notification_id: str) -> Notification:
        """Load a notification with its recipients.

        Raises:
            NotificationNotFoundError: If it does not exist.
        """
        result = await self.db.execute(
            select(Notification)
            .options(selectinload(Notification.recipients))
            .where(Notification.id == notification_id)
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        return notification

    async def mark_read(
        self,
        notification_id: str,
        recipient_id: str | None = None,
    ) -> Notification:
        """Mark a notification read.

        Without ``recipient_id`` the notification is read for everyone. With
        it only that recipient's copy is marked, and the notification turns
        READ once every recipient has read it. Idempotent: a second call
        keeps the first ``read_at``.

        Args:
            notification_id: Notification to mark.
            recipient_id: Recipient whose copy is marked read.

        Returns:
            The updated notification.

        Raises:
            NotificationNotFoundError: If it does not exist.
        """
        notification = await self.get(notification_id)

        for recipient in notification.recipients:
            if recipient_id is None or recipient.recipient_id == recipient_id:
                recipient.read = True

        fully_read = all(recipient.read for recipient in notification.recipients)
        if fully_read and notification.status != NotificationStatus.READ.value:
            notification.status = NotificationStatus.READ.value
            notification.read_at = utc_now()

        await self.db.flush()
        return notification

    async def add_recipients(
        self,
        notification_id: str,
        recipient_ids: Iterable[str],
    ) -> Notification:
        """Address an existing notification to more users.

        Users that already receive it are skipped. A READ notification that
        gains a new recipient turns UNREAD again.

        Raises:
            NotificationNotFoundError: If it does not exist.
        """
        notification = await self.get(notification_id)
        existing = {recipient.recipient_id for recipient in notification.recipients}

        added = False
        for recipient_id in dict.fromkeys(recipient_ids):
            if recipient_id not in existing:
                notification.recipients.append(NotificationRecipient(recipient_id=recipient_id))
                added = True

        if added and notification.status == NotificationStatus.READ.value:
            notification.status = NotificationStatus.UNREAD.value
            notification.read_at = None

        await self.db.flush()
        return notification

    async def list_unread(self, user_id: str, limit: int = 50) -> list[Notification]:
        """Return unread notifications addressed to a user, newest first."""
        result = await self.db.execute(
            select(Notification)
            .join(NotificationRecipient)
            .where(
                NotificationRecipient.recipient_id == user_id,
                NotificationRecipient.read.is_(False),
                Notification.status == NotificationStatus.UNREAD.value,
            )
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_entity(self, entity_id: str, limit: int = 50) -> list[Notification]:
        """Return notifications about an entity, newest first."""
        result = await self.db.execute(
            select(Notification)
            .where(Notification.entity_id == entity_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
