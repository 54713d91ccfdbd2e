"""Append-only audit trail of conflict status transitions.

Entries are staged on the caller's unit of work so they commit together with
the conflict change they describe. :meth:`AuditTrail.record` is the standalone
variant for callers that log an action outside a state change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from possync.domain.model import AuditEntry, utc_now

if TYPE_CHECKING:
    from uuid import UUID

    from possync.domain.model import Clock, ConflictStatus
    from possync.domain.ports import ConflictUnitOfWork, ConflictUnitOfWorkFactory

log = logging.getLogger(__name__)


@dataclass(slots=True)
class AuditTrail:
    unit_of_work_factory: ConflictUnitOfWorkFactory
    clock: Clock = utc_now

    def stage(
        self,
        uow: ConflictUnitOfWork,
        conflict_id: UUID,
        action: str,
        old_status: ConflictStatus | None,
        new_status: ConflictStatus,
        *,
        user_id: int | None = None,
        details: str | None = None,
    ) -> AuditEntry:
        """Add an entry to ``uow`` without committing."""

        entry = AuditEntry(
            conflict_id=conflict_id,
            action=action,
            old_status=old_status,
            new_status=new_status,
            user_id=user_id,
            details=details,
            timestamp=self.clock(),
        )
        uow.repositories.audit_entries.add(entry)
        log.debug(
            "Audit: conflict %s - %s (%s -> %s)",
            conflict_id,
            action,
            old_status,
            new_status,
        )
        return entry

    def record(
        self,
        conflict_id: UUID,
        action: str,
        old_status: ConflictStatus | None,
        new_status: ConflictStatus,
        *,
        user_id: int | None = None,
        details: str | None = None,
    ) -> AuditEntry:
        with self.unit_of_work_factory() as uow:
            entry = self.stage(
                uow,
                conflict_id,
                action,
                old_status,
                new_status,
                user_id=user_id,
                details=details,
            )
            uow.commit()
        return entry

    def history(self, conflict_id: UUID) -> list[AuditEntry]:
        """Entries for ``conflict_id``, newest first."""

        with self.unit_of_work_factory() as uow:
            entries = list(uow.repositories.audit_entries.for_conflict(conflict_id))
        return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)
