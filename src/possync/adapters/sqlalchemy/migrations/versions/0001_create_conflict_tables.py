"""Create conflict and audit tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_STATUSES = ("Detected", "AutoResolved", "PendingManual", "Resolved", "Ignored")
_RESOLUTIONS = ("LocalWins", "RemoteWins", "LastWriteWins", "Manual", "Merged")


def _status(name: str) -> sa.Enum:
    return sa.Enum(*_STATUSES, name=name, native_enum=False, length=32)


def upgrade() -> None:
    op.create_table(
        "sync_conflict",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("local_data", sa.Text(), nullable=False),
        sa.Column("remote_data", sa.Text(), nullable=False),
        sa.Column("local_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("remote_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("conflicting_fields", sa.Text(), nullable=False),
        sa.Column("sync_batch_id", sa.Integer(), nullable=True),
        sa.Column("status", _status("conflictstatus"), nullable=False),
        sa.Column("is_resolved", sa.Boolean(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by_user_id", sa.Integer(), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column(
            "applied_resolution",
            sa.Enum(*_RESOLUTIONS, name="resolutiontype", native_enum=False, length=32),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_sync_conflict")),
    )
    op.create_index("ix_sync_conflict_entity", "sync_conflict", ["entity_type", "entity_id"])
    op.create_index(
        "ix_sync_conflict_state", "sync_conflict", ["is_active", "is_resolved", "status"]
    )
    op.create_index("ix_sync_conflict_detected_at", "sync_conflict", ["detected_at"])

    op.create_table(
        "conflict_audit_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("conflict_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("old_status", _status("conflictstatus"), nullable=True),
        sa.Column("new_status", _status("conflictstatus"), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["conflict_id"],
            ["sync_conflict.id"],
            name=op.f("fk_conflict_audit_entry_conflict_id_sync_conflict"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_conflict_audit_entry")),
    )
    op.create_index(
        "ix_conflict_audit_entry_conflict",
        "conflict_audit_entry",
        ["conflict_id", "timestamp"],
    )


def downgrade() -> None:
    op.drop_index("ix_conflict_audit_entry_conflict", table_name="conflict_audit_entry")
    op.drop_table("conflict_audit_entry")
    op.drop_index("ix_sync_conflict_detected_at", table_name="sync_conflict")
    op.drop_index("ix_sync_conflict_state", table_name="sync_conflict")
    op.drop_index("ix_sync_conflict_entity", table_name="sync_conflict")
    op.drop_table("sync_conflict")
