# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit and propagation-state models.

- ChangeLog: append-only record of root-level configuration changes.
- SyncStatus: per-entity outcome of the most recent cascade attempt.
- ErrorLog: forensic record written for every failed attempt.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, JSONType, new_uuid, utc_now
from src.models.enums import SyncState


class ChangeLog(Base):
    """Immutable change fact. Rows are inserted once and never modified."""

    __tablename__ = "change_logs"
    __table_args__ = (
        Index("ix_change_logs_entity_timestamp", "entity_id", "timestamp"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    change_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    changes: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class SyncStatus(Base):
    """Propagation state for one entity, keyed by entity id."""

    __tablename__ = "sync_statuses"
    __table_args__ = (
        CheckConstraint("retry_count >= 0", name="ck_sync_statuses_retry_count"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    entity_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=SyncState.PENDING.value, nullable=False, index=True
    )
    last_sync_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class ErrorLog(Base):
    """Failure written before every recovery decision."""

    __tablename__ = "error_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    stack_trace: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
