"""Read-side helpers over the conflict store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from possync.domain.model import ConflictCriteria

if TYPE_CHECKING:
    from uuid import UUID

    from possync.domain.model import AuditEntry, Conflict, ConflictStatus
    from possync.domain.ports import ConflictUnitOfWorkFactory

    from .audit import AuditTrail
    from .contracts import ConflictQuery


@dataclass(slots=True)
class ConflictQueries:
    unit_of_work_factory: ConflictUnitOfWorkFactory
    audit: AuditTrail

    def get_conflict(self, conflict_id: UUID) -> Conflict | None:
        """Load one conflict by id, including purged ones."""
        with self.unit_of_work_factory() as uow:
            return uow.repositories.conflicts.get(conflict_id)

    def pending_conflicts(self) -> list[Conflict]:
        return self._find(ConflictCriteria(is_resolved=False))

    def query_conflicts(self, query: ConflictQuery) -> list[Conflict]:
        return self._find(query.to_criteria(), offset=query.skip, limit=query.take)

    def count_by_status(self, status: ConflictStatus) -> int:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.conflicts.count(ConflictCriteria(statuses=frozenset({status})))

    def history(self, conflict_id: UUID) -> list[AuditEntry]:
        return self.audit.history(conflict_id)

    def _find(
        self,
        criteria: ConflictCriteria,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Conflict]:
        with self.unit_of_work_factory() as uow:
            return list(uow.repositories.conflicts.find(criteria, offset=offset, limit=limit))
