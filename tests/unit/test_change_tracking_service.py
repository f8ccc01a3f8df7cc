# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the change tracking service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.change_tracking.service import ChangeTrackingService
from src.infrastructure.database.models import ChangeLog
from src.models.enums import ChangeType, EntityType


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    return db


class TestRecord:
    """Tests for ChangeTrackingService.record."""

    @pytest.mark.asyncio
    async def test_record_adds_entry(self, mock_db) -> None:
        """Test that record adds and flushes one ChangeLog."""
        service = ChangeTrackingService(db=mock_db)

        entry = await service.record(
            EntityType.PROGRAM, "program-1", ChangeType.TERM, {"terms": []}, "user-1"
        )

        mock_db.add.assert_called_once_with(entry)
        mock_db.flush.assert_awaited_once()
        assert isinstance(entry, ChangeLog)
        assert entry.entity_type == "PROGRAM"
        assert entry.change_type == "TERM"
        assert entry.changes == {"terms": []}
        assert entry.user_id == "user-1"

    def test_service_offers_no_mutation(self) -> None:
        """Test that change records cannot be edited or removed."""
        for name in ("update", "delete", "remove", "edit"):
            assert not hasattr(ChangeTrackingService, name)


class TestHistory:
    """Tests for reading change history."""

    @pytest.mark.asyncio
    async def test_history_newest_first(self, session_factory) -> None:
        """Test that history returns an entity's entries newest first."""
        async with session_factory() as db:
            service = ChangeTrackingService(db)
            await service.record(
                EntityType.PROGRAM, "program-1", ChangeType.TERM, {"v": 1}, "user-1"
            )
            await service.record(
                EntityType.PROGRAM, "program-1", ChangeType.CALENDAR, {"v": 2}, "user-1"
            )
            await service.record(
                EntityType.PROGRAM, "program-2", ChangeType.TERM, {"v": 3}, "user-2"
            )

        async with session_factory() as db:
            history = await ChangeTrackingService(db).history("program-1")

        assert [entry.changes["v"] for entry in history] == [2, 1]

    @pytest.mark.asyncio
    async def test_history_limit(self, session_factory) -> None:
        """Test that history honours the limit."""
        async with session_factory() as db:
            service = ChangeTrackingService(db)
            for version in range(5):
                await service.record(
                    EntityType.PROGRAM, "program-1", ChangeType.TERM, {"v": version}, "user-1"
                )

        async with session_factory() as db:
            history = await ChangeTrackingService(db).history("program-1", limit=2)

        assert [entry.changes["v"] for entry in history] == [4, 3]

    @pytest.mark.asyncio
    async def test_recent_changes_filter(self, session_factory) -> None:
        """Test filtering recent changes by dimension."""
        async with session_factory() as db:
            service = ChangeTrackingService(db)
            await service.record(
                EntityType.PROGRAM, "program-1", ChangeType.TERM, {}, "user-1"
            )
            await service.record(
                EntityType.PROGRAM, "program-2", ChangeType.ASSESSMENT, {}, "user-1"
            )

        async with session_factory() as db:
            service = ChangeTrackingService(db)
            everything = await service.recent_changes()
            assessments = await service.recent_changes(change_type=ChangeType.ASSESSMENT)

        assert len(everything) == 2
        assert [entry.entity_id for entry in assessments] == ["program-2"]
