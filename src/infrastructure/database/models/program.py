# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program, class group and class models with their settings mirrors.

A Program owns the baseline term system, assessment system and calendar.
Every ClassGroup and Class keeps a settings row that mirrors those
descriptors; the rows are keyed by the owning entity id so a cascade can
upsert them.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    JSONType,
    TimestampMixin,
    new_uuid,
    utc_now,
)
from src.models.enums import ProgramStatus


class Program(Base, TimestampMixin):
    """Root configuration entity."""

    __tablename__ = "programs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ProgramStatus.ACTIVE.value, nullable=False
    )

    # At most one descriptor of each kind at a time
    term_system: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    assessment_system: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    grading_schema: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    calendar: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    class_groups: Mapped[list["ClassGroup"]] = relationship(
        back_populates="program",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Program {self.name}>"


class ClassGroup(Base, TimestampMixin):
    """Subdivision of a program (e.g. a grade level)."""

    __tablename__ = "class_groups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    program: Mapped[Program] = relationship(back_populates="class_groups")
    classes: Mapped[list["Class"]] = relationship(
        back_populates="class_group",
        cascade="all, delete-orphan",
    )


class ClassGroupSettings(Base):
    """Derived, locally overridable copy of the program settings."""

    __tablename__ = "class_group_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    class_group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("class_groups.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    term_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    assessment_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    calendar_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    # Per-term overrides keyed by term name; never touched by a cascade
    custom_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class Class(Base, TimestampMixin):
    """Leaf entity: a single class/section."""

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    class_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("class_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    class_group: Mapped[ClassGroup] = relationship(back_populates="classes")


class ClassSettings(Base):
    """Settings mirror held by a class."""

    __tablename__ = "class_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    class_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    term_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    assessment_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    calendar_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
