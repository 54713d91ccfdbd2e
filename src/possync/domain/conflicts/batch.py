"""Batch operations over many conflicts.

Sweeps run each member in its own unit of work. A member that fails is logged
and skipped so the caller always gets a usable partial count.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from possync.domain.model import ConflictCriteria, ConflictStatus, utc_now

from .contracts import ConflictSummary, ManualResolveRequest

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from possync.domain.model import Clock, ResolutionType
    from possync.domain.ports import ConflictUnitOfWorkFactory

    from .audit import AuditTrail
    from .resolution import ConflictResolver

log = logging.getLogger(__name__)

DEFAULT_RECENT_CONFLICTS = 10
BULK_RESOLUTION_NOTES = "Bulk resolution"
PURGED_ACTION = "Purged"


@dataclass(slots=True)
class BatchCoordinator:
    unit_of_work_factory: ConflictUnitOfWorkFactory
    resolver: ConflictResolver
    audit: AuditTrail
    recent_conflicts_limit: int = DEFAULT_RECENT_CONFLICTS
    clock: Clock = utc_now

    def auto_resolve_all(self) -> int:
        """Attempt automatic resolution of every unresolved, active conflict.

        Returns how many conflicts ended up ``AutoResolved``; deferrals to manual
        review are not counted.
        """

        with self.unit_of_work_factory() as uow:
            pending = [
                conflict.id
                for conflict in uow.repositories.conflicts.find(ConflictCriteria(is_resolved=False))
            ]

        resolved = 0
        for conflict_id in pending:
            try:
                result = self.resolver.resolve_by_id(conflict_id)
            except Exception:  # noqa: BLE001
                log.exception("Auto-resolution failed for conflict %s", conflict_id)
                continue
            if result.success and result.new_status is ConflictStatus.AUTO_RESOLVED:
                resolved += 1

        log.info("Auto-resolved %d of %d pending conflicts", resolved, len(pending))
        return resolved

    def bulk_resolve(
        self,
        conflict_ids: Iterable[UUID],
        resolution: ResolutionType,
        user_id: int,
        notes: str | None = None,
    ) -> int:
        """Apply one operator decision to many conflicts via the manual path."""

        resolved = 0
        for conflict_id in conflict_ids:
            request = ManualResolveRequest(
                conflict_id=conflict_id,
                resolution=resolution,
                resolved_by_user_id=user_id,
                notes=notes or BULK_RESOLUTION_NOTES,
            )
            try:
                result = self.resolver.manual_resolve(request)
            except Exception:  # noqa: BLE001
                log.exception("Bulk resolution failed for conflict %s", conflict_id)
                continue
            if result.success:
                resolved += 1
            else:
                log.warning("Skipped conflict %s: %s", conflict_id, result.error_message)

        log.info("Bulk resolved %d conflicts with %s", resolved, resolution)
        return resolved

    def purge_resolved(self, cutoff: datetime) -> int:
        """Soft-delete resolved conflicts whose ``resolved_at`` is before ``cutoff``."""

        criteria = ConflictCriteria(is_resolved=True, resolved_before=cutoff)
        with self.unit_of_work_factory() as uow:
            conflicts = list(uow.repositories.conflicts.find(criteria))
            for conflict in conflicts:
                conflict.deactivate()
                uow.repositories.conflicts.update(conflict)
                self.audit.stage(
                    uow,
                    conflict.id,
                    PURGED_ACTION,
                    conflict.status,
                    conflict.status,
                    details=f"Resolved before {cutoff.isoformat()}",
                )
            uow.commit()

        log.info("Purged %d resolved conflicts older than %s", len(conflicts), cutoff)
        return len(conflicts)

    def get_conflict_summary(self) -> ConflictSummary:
        active = ConflictCriteria()
        with self.unit_of_work_factory() as uow:
            repo = uow.repositories.conflicts
            return ConflictSummary(
                total_conflicts=repo.count(active),
                unresolved=repo.count(ConflictCriteria(is_resolved=False)),
                pending_manual=repo.count(
                    ConflictCriteria(statuses=frozenset({ConflictStatus.PENDING_MANUAL}))
                ),
                auto_resolved=repo.count(
                    ConflictCriteria(is_resolved=True, resolved_by_user=False)
                ),
                manually_resolved=repo.count(
                    ConflictCriteria(statuses=frozenset({ConflictStatus.RESOLVED}))
                ),
                ignored=repo.count(ConflictCriteria(statuses=frozenset({ConflictStatus.IGNORED}))),
                by_entity_type=repo.count_by_entity_type(active),
                recent_conflicts=tuple(
                    repo.find(active, limit=self.recent_conflicts_limit, newest_first=True)
                ),
                generated_at=self.clock(),
            )
