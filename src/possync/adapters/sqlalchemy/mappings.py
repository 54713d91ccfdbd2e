"""SQLAlchemy mapping metadata for the conflict store."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from possync.domain.model import AuditEntry, Conflict, ConflictStatus, ResolutionType

if TYPE_CHECKING:
    from enum import StrEnum

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class FieldListType(TypeDecorator[list[str]]):
    """Ordered list of field names stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [item for item in items if isinstance(item, str)]


def _status_enum() -> Enum:
    return Enum(
        ConflictStatus,
        native_enum=False,
        length=32,
        values_callable=_enum_values,
        validate_strings=True,
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

sync_conflict_table = Table(
    "sync_conflict",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_type", String(100), nullable=False),
    Column("entity_id", Integer, nullable=False),
    Column("local_data", Text, nullable=False),
    Column("remote_data", Text, nullable=False),
    Column("local_timestamp", UTCDateTime(), nullable=False),
    Column("remote_timestamp", UTCDateTime(), nullable=False),
    Column("conflicting_fields", FieldListType(), nullable=False),
    Column("sync_batch_id", Integer, nullable=True),
    Column("status", _status_enum(), nullable=False),
    Column("is_resolved", Boolean, nullable=False, default=False),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Column("resolved_by_user_id", Integer, nullable=True),
    Column("resolution_notes", Text, nullable=True),
    Column(
        "applied_resolution",
        Enum(
            ResolutionType,
            native_enum=False,
            length=32,
            values_callable=_enum_values,
            validate_strings=True,
        ),
        nullable=True,
    ),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("detected_at", UTCDateTime(), nullable=False),
    Index("ix_sync_conflict_entity", "entity_type", "entity_id"),
    Index("ix_sync_conflict_state", "is_active", "is_resolved", "status"),
    Index("ix_sync_conflict_detected_at", "detected_at"),
)

conflict_audit_entry_table = Table(
    "conflict_audit_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "conflict_id",
        UUIDColumnType,
        ForeignKey("sync_conflict.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("action", String(50), nullable=False),
    Column("old_status", _status_enum(), nullable=True),
    Column("new_status", _status_enum(), nullable=False),
    Column("user_id", Integer, nullable=True),
    Column("details", Text, nullable=True),
    Column("timestamp", UTCDateTime(), nullable=False),
    Index("ix_conflict_audit_entry_conflict", "conflict_id", "timestamp"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the conflict model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Conflict, sync_conflict_table)
    mapper_registry.map_imperatively(AuditEntry, conflict_audit_entry_table)

    configure_mappers()
    return mapper_registry
