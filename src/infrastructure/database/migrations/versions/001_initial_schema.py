# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial SchoolSync schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-20

Creates the program hierarchy with its settings mirrors, the change and
sync audit tables, and notifications.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # 1. Program hierarchy
    # ==========================================================================
    op.create_table(
        "programs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("term_system", JSON, nullable=True),
        sa.Column("assessment_system", JSON, nullable=True),
        sa.Column("grading_schema", JSON, nullable=True),
        sa.Column("calendar", JSON, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "class_groups",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "program_id",
            sa.String(36),
            sa.ForeignKey("programs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_class_groups_program_id", "class_groups", ["program_id"])

    op.create_table(
        "class_group_settings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "class_group_id",
            sa.String(36),
            sa.ForeignKey("class_groups.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column("term_settings", JSON, nullable=True),
        sa.Column("assessment_settings", JSON, nullable=True),
        sa.Column("calendar_settings", JSON, nullable=True),
        sa.Column("custom_settings", JSON, nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "classes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "class_group_id",
            sa.String(36),
            sa.ForeignKey("class_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_classes_class_group_id", "classes", ["class_group_id"])

    op.create_table(
        "class_settings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "class_id",
            sa.String(36),
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column("term_settings", JSON, nullable=True),
        sa.Column("assessment_settings", JSON, nullable=True),
        sa.Column("calendar_settings", JSON, nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # 2. Change tracking and sync state
    # ==========================================================================
    op.create_table(
        "change_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("change_type", sa.String(20), nullable=False),
        sa.Column("changes", JSON, nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_change_logs_entity_timestamp", "change_logs", ["entity_id", "timestamp"]
    )
    op.create_index("ix_change_logs_change_type", "change_logs", ["change_type"])

    op.create_table(
        "sync_statuses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("entity_id", sa.String(36), unique=True, nullable=False),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("retry_count", sa.Integer, nullable=False, server_default="0"),
        sa.CheckConstraint("retry_count >= 0", name="ck_sync_statuses_retry_count"),
    )
    op.create_index("ix_sync_statuses_status", "sync_statuses", ["status"])

    op.create_table(
        "error_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("error_message", sa.Text, nullable=False),
        sa.Column("stack_trace", sa.Text, nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_error_logs_entity_id", "error_logs", ["entity_id"])

    # ==========================================================================
    # 3. Notifications
    # ==========================================================================
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("details", JSON, nullable=False),
        sa.Column("sender_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("status", sa.String(10), nullable=False, server_default="UNREAD"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_entity_id", "notifications", ["entity_id"])

    op.create_table(
        "notification_recipients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "notification_id",
            sa.String(36),
            sa.ForeignKey("notifications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("recipient_id", sa.String(36), nullable=False),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.UniqueConstraint(
            "notification_id", "recipient_id", name="uq_notification_recipient"
        ),
    )
    op.create_index(
        "ix_notification_recipients_recipient_id",
        "notification_recipients",
        ["recipient_id"],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("notification_recipients")
    op.drop_table("notifications")
    op.drop_table("error_logs")
    op.drop_table("sync_statuses")
    op.drop_table("change_logs")
    op.drop_table("class_settings")
    op.drop_table("classes")
    op.drop_table("class_group_settings")
    op.drop_table("class_groups")
    op.drop_table("programs")
