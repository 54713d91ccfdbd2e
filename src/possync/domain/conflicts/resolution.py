"""Resolution engine: decides winning payloads and drives the status machine.

States::

    Detected -> AutoResolved            (rule picks a side)
    Detected -> PendingManual           (rule defers to an operator)
    Detected | PendingManual -> Resolved  (operator decision)
    Detected | PendingManual -> Ignored   (operator dismissal)

Each operation performs one read-modify-write inside a single unit of work,
staging the audit entry next to the conflict update before committing.
LastWriteWins picks the local payload only when its timestamp is strictly
later; ties go to the remote (head office) copy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from possync.domain.model import ConflictStatus, ResolutionType, utc_now

from .contracts import ResolutionResult
from .differ import MalformedDocumentError, merge_documents, parse_document

if TYPE_CHECKING:
    from uuid import UUID

    from possync.domain.model import Clock, Conflict, ResolutionRule
    from possync.domain.ports import ConflictUnitOfWork, ConflictUnitOfWorkFactory

    from .audit import AuditTrail
    from .contracts import ManualResolveRequest
    from .rules import RuleTable

log = logging.getLogger(__name__)

PENDING_MANUAL_ACTION = "PendingManual"
MANUAL_RESOLVED_ACTION = "ManualResolved"
IGNORED_ACTION = "Ignored"
APPLIED_ACTION = "Applied"

NOT_FOUND_MESSAGE = "Conflict not found"
ALREADY_RESOLVED_MESSAGE = "Conflict already resolved"


def winning_payload(
    conflict: Conflict,
    resolution: ResolutionType,
    *,
    merged_data: str | None = None,
) -> str:
    """Return the document that survives under ``resolution``.

    Raises ``MalformedDocumentError`` when a merge has to be computed from (or
    is supplied as) a payload that is not a JSON object.
    """

    match resolution:
        case ResolutionType.LOCAL_WINS:
            return conflict.local_data
        case ResolutionType.REMOTE_WINS:
            return conflict.remote_data
        case ResolutionType.LAST_WRITE_WINS:
            return conflict.local_data if conflict.local_is_newer else conflict.remote_data
        case ResolutionType.MERGED:
            if merged_data:
                parse_document(merged_data)
                return merged_data
            return merge_documents(conflict.local_data, conflict.remote_data)
        case ResolutionType.MANUAL:
            raise ValueError("Manual is not a concrete resolution")


@dataclass(slots=True)
class ConflictResolver:
    unit_of_work_factory: ConflictUnitOfWorkFactory
    rules: RuleTable
    audit: AuditTrail
    clock: Clock = utc_now

    def resolve(self, conflict: Conflict | None) -> ResolutionResult:
        """Resolve ``conflict`` using the entity-wide rule for its type.

        The stored row is authoritative: the caller's copy may predate a
        decision made elsewhere, so it is only persisted when the store has no
        row for it yet.
        """

        if conflict is None:
            raise ValueError("conflict is required")
        with self.unit_of_work_factory() as uow:
            current = uow.repositories.conflicts.get(conflict.id)
            if current is None:
                uow.repositories.conflicts.add(conflict)
                current = conflict
            result = self._resolve_automatically(uow, current)
            uow.commit()
        return result

    def resolve_by_id(self, conflict_id: UUID) -> ResolutionResult:
        with self.unit_of_work_factory() as uow:
            conflict = uow.repositories.conflicts.get(conflict_id)
            if conflict is None:
                return ResolutionResult.failed(conflict_id, NOT_FOUND_MESSAGE)
            result = self._resolve_automatically(uow, conflict)
            uow.commit()
        return result

    def manual_resolve(self, request: ManualResolveRequest | None) -> ResolutionResult:
        """Apply an operator's resolution verbatim, bypassing rule lookup.

        A conflict that is already resolved is refused, so retries never
        overwrite an earlier decision.
        """

        if request is None:
            raise ValueError("request is required")

        with self.unit_of_work_factory() as uow:
            conflict = uow.repositories.conflicts.get(request.conflict_id)
            if conflict is None:
                return ResolutionResult.failed(request.conflict_id, NOT_FOUND_MESSAGE)
            if conflict.is_resolved:
                return ResolutionResult.failed(
                    conflict.id, ALREADY_RESOLVED_MESSAGE, status=conflict.status
                )
            if request.resolution is ResolutionType.MANUAL:
                return ResolutionResult.failed(
                    conflict.id,
                    "Manual is not a concrete resolution; choose a winning side",
                    status=conflict.status,
                )
            try:
                data = winning_payload(
                    conflict, request.resolution, merged_data=request.merged_data
                )
            except MalformedDocumentError as exc:
                return ResolutionResult.failed(
                    conflict.id, f"Cannot merge malformed payloads: {exc}", status=conflict.status
                )

            old_status = conflict.status
            conflict.mark_resolved(
                request.resolution,
                user_id=request.resolved_by_user_id,
                at=self.clock(),
                notes=request.notes,
            )
            uow.repositories.conflicts.update(conflict)
            self.audit.stage(
                uow,
                conflict.id,
                MANUAL_RESOLVED_ACTION,
                old_status,
                ConflictStatus.RESOLVED,
                user_id=request.resolved_by_user_id,
                details=f"Resolution: {request.resolution}, Notes: {request.notes}",
            )
            uow.commit()

        log.info(
            "Conflict %s manually resolved with %s by user %s",
            conflict.id,
            request.resolution,
            request.resolved_by_user_id,
        )
        return ResolutionResult.succeeded(
            conflict.id, request.resolution, data, auto_resolved=False
        )

    def ignore(self, conflict_id: UUID, user_id: int, reason: str | None = None) -> bool:
        """Dismiss a conflict without choosing a winning payload."""

        with self.unit_of_work_factory() as uow:
            conflict = uow.repositories.conflicts.get(conflict_id)
            if conflict is None:
                log.warning("Attempted to ignore non-existent conflict %s", conflict_id)
                return False
            if conflict.is_resolved:
                log.warning(
                    "Attempted to ignore conflict %s in state %s", conflict_id, conflict.status
                )
                return False

            old_status = conflict.status
            conflict.mark_ignored(user_id=user_id, at=self.clock(), reason=reason)
            uow.repositories.conflicts.update(conflict)
            self.audit.stage(
                uow,
                conflict.id,
                IGNORED_ACTION,
                old_status,
                ConflictStatus.IGNORED,
                user_id=user_id,
                details=reason,
            )
            uow.commit()

        log.info("Conflict %s ignored by user %s", conflict_id, user_id)
        return True

    def mark_applied(self, conflict_id: UUID) -> bool:
        """Record that the host wrote the winning payload back to its entity."""

        with self.unit_of_work_factory() as uow:
            conflict = uow.repositories.conflicts.get(conflict_id)
            if conflict is None or not conflict.is_resolved or conflict.is_ignored:
                return False
            conflict.mark_applied()
            uow.repositories.conflicts.update(conflict)
            self.audit.stage(
                uow,
                conflict.id,
                APPLIED_ACTION,
                conflict.status,
                conflict.status,
                details=f"Applied {conflict.applied_resolution} payload to "
                f"{conflict.entity_type}:{conflict.entity_id}",
            )
            uow.commit()
        return True

    def _governing_rule(self, conflict: Conflict) -> ResolutionRule:
        """Entity-wide rule, unless a conflicting field has its own review rule."""

        for name in conflict.conflicting_fields:
            field_rule = self.rules.property_rule(conflict.entity_type, name)
            if field_rule is not None and field_rule.defers_to_manual_review:
                return field_rule
        return self.rules.get_applicable_rule(conflict.entity_type)

    def _resolve_automatically(
        self,
        uow: ConflictUnitOfWork,
        conflict: Conflict,
    ) -> ResolutionResult:
        if conflict.is_resolved:
            return ResolutionResult.failed(
                conflict.id, ALREADY_RESOLVED_MESSAGE, status=conflict.status
            )

        rule = self._governing_rule(conflict)
        old_status = conflict.status

        if rule.defers_to_manual_review:
            if old_status is not ConflictStatus.PENDING_MANUAL:
                conflict.defer_to_manual_review()
                uow.repositories.conflicts.update(conflict)
                self.audit.stage(
                    uow,
                    conflict.id,
                    PENDING_MANUAL_ACTION,
                    old_status,
                    ConflictStatus.PENDING_MANUAL,
                    details="Rule requires manual review: "
                    f"{rule.description or rule.default_resolution}",
                )
                log.info("Conflict %s requires manual review per rule", conflict.id)
            return ResolutionResult.pending_manual(conflict.id, rule.default_resolution)

        resolution = rule.default_resolution
        data = winning_payload(conflict, resolution)
        conflict.mark_auto_resolved(
            resolution,
            at=self.clock(),
            notes=f"Auto-resolved using rule: {rule.description or resolution}",
        )
        uow.repositories.conflicts.update(conflict)
        self.audit.stage(
            uow,
            conflict.id,
            str(resolution),
            old_status,
            ConflictStatus.AUTO_RESOLVED,
            details=f"Applied resolution: {resolution}",
        )
        log.info("Conflict %s auto-resolved with %s", conflict.id, resolution)
        return ResolutionResult.succeeded(conflict.id, resolution, data, auto_resolved=True)
