"""SQLAlchemy adapter package for the conflict store."""

from __future__ import annotations

from .mappings import (
    conflict_audit_entry_table,
    mapper_registry,
    start_mappers,
    sync_conflict_table,
)
from .repositories import SqlAlchemyAuditEntryRepository, SqlAlchemyConflictRepository
from .unit_of_work import (
    SqlAlchemyConflictUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAuditEntryRepository",
    "SqlAlchemyConflictRepository",
    "SqlAlchemyConflictUnitOfWork",
    "StartupError",
    "configured_engine",
    "conflict_audit_entry_table",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "sync_conflict_table",
]
