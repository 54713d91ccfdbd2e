"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import AuditEntryRepository, ConflictRepository, Repository
from .unit_of_work import (
    ConflictRepositories,
    ConflictUnitOfWork,
    ConflictUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AuditEntryRepository",
    "ConflictRepositories",
    "ConflictRepository",
    "ConflictUnitOfWork",
    "ConflictUnitOfWorkFactory",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
