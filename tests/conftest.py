# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- A throwaway SQLite database (aiosqlite) with the full schema
- A seeded program with two class groups of two classes each
- The cascade coordinator wired to an in-memory retry queue and cache
"""

import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from src.domains.program.coordinator import ProgramCascadeCoordinator
from src.domains.recovery.service import ErrorRecoveryService, RetryConfig
from src.infrastructure.background.retry_queue import InMemoryRetryQueue
from src.infrastructure.cache import InMemoryCache
from src.infrastructure.database.connection import (
    SessionFactory,
    build_sessionmaker,
    create_engine_for,
    make_session_factory,
)
from src.infrastructure.database.models import Base, Class, ClassGroup, Program
from src.models.terms import TermUpdate

# Background tasks use the Dramatiq StubBroker in tests
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")

ADMIN_USER_ID = "admin-0001"
ACTOR_ID = "user-0001"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with every table."""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'schoolsync.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> SessionFactory:
    """Provide a transactional session scope factory."""
    return make_session_factory(build_sessionmaker(engine))


@dataclass
class SeededProgram:
    """IDs of a seeded program hierarchy."""

    program_id: str
    group_ids: list[str] = field(default_factory=list)
    classes_by_group: dict[str, list[str]] = field(default_factory=dict)

    @property
    def class_ids(self) -> list[str]:
        return [cid for group_id in self.group_ids for cid in self.classes_by_group[group_id]]


@pytest_asyncio.fixture
async def seeded_program(session_factory: SessionFactory) -> SeededProgram:
    """Seed a program with 2 class groups, each with 2 classes."""
    async with session_factory() as db:
        program = Program(name="Primary Program")
        db.add(program)
        await db.flush()
        seeded = SeededProgram(program_id=program.id)

        for grade in (1, 2):
            group = ClassGroup(program_id=program.id, name=f"Grade {grade}")
            db.add(group)
            await db.flush()
            seeded.group_ids.append(group.id)
            seeded.classes_by_group[group.id] = []

            for section in ("A", "B"):
                cls = Class(class_group_id=group.id, name=f"{grade}{section}")
                db.add(cls)
                await db.flush()
                seeded.classes_by_group[group.id].append(cls.id)

    return seeded


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def retry_queue() -> InMemoryRetryQueue:
    """Provide a retry queue on a virtual clock."""
    return InMemoryRetryQueue()


@pytest.fixture
def cache() -> InMemoryCache:
    """Provide an in-process cache."""
    return InMemoryCache()


@pytest.fixture
def retry_config() -> RetryConfig:
    """Retry policy used by the cascade tests."""
    return RetryConfig(max_retries=2, backoff_interval_ms=100)


@pytest.fixture
def recovery(
    session_factory: SessionFactory,
    retry_queue: InMemoryRetryQueue,
    retry_config: RetryConfig,
) -> ErrorRecoveryService:
    """Provide the recovery policy notifying a single administrator."""
    return ErrorRecoveryService(
        session_factory,
        retry_queue,
        retry_config,
        admin_user_ids=[ADMIN_USER_ID],
    )


@pytest.fixture
def coordinator(
    session_factory: SessionFactory,
    recovery: ErrorRecoveryService,
    retry_queue: InMemoryRetryQueue,
    cache: InMemoryCache,
) -> ProgramCascadeCoordinator:
    """Provide a coordinator registered as the retry queue's handler."""
    coordinator = ProgramCascadeCoordinator(session_factory, recovery, cache)
    retry_queue.set_handler(coordinator.retry)
    return coordinator


# =============================================================================
# Payload Fixtures
# =============================================================================


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


@pytest.fixture
def term_update() -> TermUpdate:
    """Two-semester term system with assessment periods."""
    return TermUpdate.model_validate(
        {
            "type": "SEMESTER",
            "terms": [
                {
                    "name": "Fall",
                    "start_date": _utc(2025, 9, 1),
                    "end_date": _utc(2026, 1, 20),
                    "assessment_periods": [
                        {
                            "name": "Midterm",
                            "start_date": _utc(2025, 10, 20),
                            "end_date": _utc(2025, 10, 31),
                            "weight": 40,
                        },
                        {
                            "name": "Final",
                            "start_date": _utc(2026, 1, 5),
                            "end_date": _utc(2026, 1, 16),
                            "weight": 60,
                        },
                    ],
                },
                {
                    "name": "Spring",
                    "start_date": _utc(2026, 2, 1),
                    "end_date": _utc(2026, 6, 15),
                },
            ],
        }
    )


@pytest.fixture
def marking_scheme_payload() -> dict[str, Any]:
    """Assessment update using a marking scheme."""
    return {
        "assessment_system": {
            "kind": "marking_scheme",
            "max_marks": 100,
            "passing_marks": 40,
            "grading_scale": [
                {"grade": "A", "min_percentage": 80, "max_percentage": 100},
                {"grade": "B", "min_percentage": 60, "max_percentage": 79.99},
                {"grade": "C", "min_percentage": 40, "max_percentage": 59.99},
            ],
        },
        "grading_schema": {"passing_percentage": 40},
    }
