# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification system.

Usage:
    from src.infrastructure.notifications import NotificationService

    service = NotificationService(session)
    await service.emit(
        entity_id=class_group_id,
        type=NotificationType.TERM_UPDATE,
        details={"program_id": program_id},
        sender_id=actor_id,
    )
"""

from src.infrastructure.notifications.service import (
    NotificationNotFoundError,
    NotificationService,
    NotificationServiceError,
)

__all__ = [
    "NotificationNotFoundError",
    "NotificationService",
    "NotificationServiceError",
]
