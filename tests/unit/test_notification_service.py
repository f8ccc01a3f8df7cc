# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the notification service."""

import pytest

from src.infrastructure.notifications.service import (
    NotificationNotFoundError,
    NotificationService,
)
from src.models.enums import NotificationStatus, NotificationType


class TestEmit:
    """Tests for NotificationService.emit."""

    @pytest.mark.asyncio
    async def test_emit_stores_unread_notification(self, session_factory) -> None:
        """Test that a notification is persisted unread."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="class-1",
                type=NotificationType.TERM_UPDATE,
                details={"program_id": "program-1"},
                sender_id="user-1",
                title="Term settings updated",
            )

        async with session_factory() as db:
            stored = await NotificationService(db).get(notification.id)

        assert stored.type == NotificationType.TERM_UPDATE.value
        assert stored.status == NotificationStatus.UNREAD.value
        assert stored.details == {"program_id": "program-1"}
        assert stored.read_at is None
        assert stored.recipients == []

    @pytest.mark.asyncio
    async def test_emit_deduplicates_recipients(self, session_factory) -> None:
        """Test that each recipient is addressed once."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="class-1",
                type=NotificationType.SYSTEM,
                details={},
                sender_id="system",
                recipient_ids=["u1", "u2", "u1"],
            )

        assert sorted(r.recipient_id for r in notification.recipients) == ["u1", "u2"]


class TestMarkRead:
    """Tests for NotificationService.mark_read."""

    @pytest.mark.asyncio
    async def test_mark_read_is_idempotent(self, session_factory) -> None:
        """Test that a second call keeps the first read time."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="class-1",
                type=NotificationType.CALENDAR_UPDATE,
                details={},
                sender_id="user-1",
            )

        async with session_factory() as db:
            await NotificationService(db).mark_read(notification.id)

        async with session_factory() as db:
            first_read_at = (await NotificationService(db).get(notification.id)).read_at

        async with session_factory() as db:
            second = await NotificationService(db).mark_read(notification.id)

        assert second.status == NotificationStatus.READ.value
        assert first_read_at is not None
        assert second.read_at == first_read_at

    @pytest.mark.asyncio
    async def test_mark_read_unknown(self, session_factory) -> None:
        """Test that an unknown notification raises."""
        async with session_factory() as db:
            with pytest.raises(NotificationNotFoundError):
                await NotificationService(db).mark_read("missing")

    @pytest.mark.asyncio
    async def test_mark_read_for_recipient(self, session_factory) -> None:
        """Test that a recipient's read flag removes it from their inbox only."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="class-1",
                type=NotificationType.ANNOUNCEMENT,
                details={},
                sender_id="user-1",
                recipient_ids=["u1", "u2"],
            )

        async with session_factory() as db:
            await NotificationService(db).mark_read(notification.id, recipient_id="u1")

        async with session_factory() as db:
            service = NotificationService(db)
            assert await service.list_unread("u1") == []
            unread = await service.list_unread("u2")
            assert [n.id for n in unread] == [notification.id]
            assert unread[0].status == NotificationStatus.UNREAD.value

        async with session_factory() as db:
            updated = await NotificationService(db).mark_read(notification.id, recipient_id="u2")

        assert updated.status == NotificationStatus.READ.value
        assert updated.read_at is not None

    @pytest.mark.asyncio
    async def test_mark_read_without_recipient_clears_every_inbox(
        self, session_factory
    ) -> None:
        """Test that marking the notification itself removes it for everyone."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="class-1",
                type=NotificationType.ANNOUNCEMENT,
                details={},
                sender_id="user-1",
                recipient_ids=["u1", "u2"],
            )

        async with session_factory() as db:
            await NotificationService(db).mark_read(notification.id)

        async with session_factory() as db:
            service = NotificationService(db)
            assert await service.list_unread("u1") == []
            assert await service.list_unread("u2") == []
            stored = await service.get(notification.id)
        assert all(recipient.read for recipient in stored.recipients)

    @pytest.mark.asyncio
    async def test_read_notifications_are_not_listed_as_unread(self, session_factory) -> None:
        """Test that a READ notification never shows in an unread listing."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="class-1",
                type=NotificationType.ANNOUNCEMENT,
                details={},
                sender_id="user-1",
                recipient_ids=["u1"],
            )
            notification.status = NotificationStatus.READ.value

        async with session_factory() as db:
            assert await NotificationService(db).list_unread("u1") == []


class TestRecipientsAndListing:
    """Tests for recipients and listings."""

    @pytest.mark.asyncio
    async def test_add_recipients_skips_existing(self, session_factory) -> None:
        """Test that add_recipients only adds new users."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="group-1",
                type=NotificationType.REMINDER,
                details={},
                sender_id="user-1",
                recipient_ids=["u1"],
            )

        async with session_factory() as db:
            updated = await NotificationService(db).add_recipients(
                notification.id, ["u1", "u2", "u3", "u2"]
            )

        assert sorted(r.recipient_id for r in updated.recipients) == ["u1", "u2", "u3"]

    @pytest.mark.asyncio
    async def test_list_for_entity(self, session_factory) -> None:
        """Test listing notifications about one entity."""
        async with session_factory() as db:
            service = NotificationService(db)
            for entity_id in ("class-1", "class-1", "class-2"):
                await service.emit(
                    entity_id=entity_id,
                    type=NotificationType.TERM_UPDATE,
                    details={},
                    sender_id="user-1",
                )

        async with session_factory() as db:
            notifications = await NotificationService(db).list_for_entity("class-1")

        assert len(notifications) == 2
        assert {n.entity_id for n in notifications} == {"class-1"}

    @pytest.mark.asyncio
    async def test_new_recipient_reopens_read_notification(self, session_factory) -> None:
        """Test that adding a recipient to a READ notification makes it unread again."""
        async with session_factory() as db:
            notification = await NotificationService(db).emit(
                entity_id="group-1",
                type=NotificationType.ANNOUNCEMENT,
                details={},
                sender_id="user-1",
                recipient_ids=["u1"],
            )

        async with session_factory() as db:
            await NotificationService(db).mark_read(notification.id, recipient_id="u1")

        async with session_factory() as db:
            updated = await NotificationService(db).add_recipients(notification.id, ["u2"])
            assert updated.status == NotificationStatus.UNREAD.value
            assert updated.read_at is None

        async with session_factory() as db:
            service = NotificationService(db)
            assert await service.list_unread("u1") == []
            assert [n.id for n in await service.list_unread("u2")] == [notification.id]
