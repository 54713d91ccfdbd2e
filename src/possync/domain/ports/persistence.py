"""Ports for persisting conflicts and their audit history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from possync.domain.model import AuditEntry, Conflict

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from possync.domain.model import ConflictCriteria


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ConflictRepository(Repository[Conflict], Protocol):
    """Persistence contract for sync conflicts.

    ``find`` returns matches ordered by detection time, oldest first.
    """

    def get(self, conflict_id: UUID) -> Conflict | None: ...

    def update(self, conflict: Conflict) -> None: ...

    def find(
        self,
        criteria: ConflictCriteria,
        *,
        offset: int = 0,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> Sequence[Conflict]: ...

    def count(self, criteria: ConflictCriteria) -> int: ...

    def count_by_entity_type(self, criteria: ConflictCriteria) -> dict[str, int]: ...


@runtime_checkable
class AuditEntryRepository(Repository[AuditEntry], Protocol):
    """Append-only store for audit entries."""

    def for_conflict(self, conflict_id: UUID) -> Sequence[AuditEntry]: ...
