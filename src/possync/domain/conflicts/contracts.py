"""Request and result types exchanged with callers of the conflict engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from possync.domain.model import (
    ConflictCriteria,
    ConflictStatus,
    ResolutionOutcome,
    ResolutionType,
    utc_now,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from possync.domain.model import Conflict

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionResult:
    """Outcome of one resolution attempt.

    ``success`` is true only for ``ResolutionOutcome.RESOLVED``. A policy
    deferral is reported with ``outcome=DEFERRED`` so callers can tell it apart
    from a failure without parsing ``error_message``.
    """

    conflict_id: UUID
    outcome: ResolutionOutcome
    new_status: ConflictStatus | None
    applied_resolution: ResolutionType | None = None
    resulting_data: str | None = None
    error_message: str | None = None
    was_auto_resolved: bool = False
    processed_at: datetime = field(default_factory=utc_now)

    @property
    def success(self) -> bool:
        return self.outcome is ResolutionOutcome.RESOLVED

    @property
    def deferred(self) -> bool:
        return self.outcome is ResolutionOutcome.DEFERRED

    @classmethod
    def succeeded(
        cls,
        conflict_id: UUID,
        resolution: ResolutionType,
        resulting_data: str | None,
        *,
        auto_resolved: bool,
    ) -> ResolutionResult:
        return cls(
            conflict_id=conflict_id,
            outcome=ResolutionOutcome.RESOLVED,
            new_status=ConflictStatus.AUTO_RESOLVED if auto_resolved else ConflictStatus.RESOLVED,
            applied_resolution=resolution,
            resulting_data=resulting_data,
            was_auto_resolved=auto_resolved,
        )

    @classmethod
    def pending_manual(cls, conflict_id: UUID, resolution: ResolutionType) -> ResolutionResult:
        return cls(
            conflict_id=conflict_id,
            outcome=ResolutionOutcome.DEFERRED,
            new_status=ConflictStatus.PENDING_MANUAL,
            applied_resolution=resolution,
            error_message="Conflict requires manual resolution",
        )

    @classmethod
    def failed(
        cls,
        conflict_id: UUID,
        message: str,
        *,
        status: ConflictStatus | None = None,
    ) -> ResolutionResult:
        return cls(
            conflict_id=conflict_id,
            outcome=ResolutionOutcome.FAILED,
            new_status=status,
            error_message=message,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ManualResolveRequest:
    """An operator's decision for one conflict."""

    conflict_id: UUID
    resolution: ResolutionType
    resolved_by_user_id: int
    notes: str | None = None
    merged_data: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictQuery:
    """Filter and page over active conflicts.

    When ``status`` is set it decides which conflicts match on its own;
    ``include_resolved`` only applies when no status is given.
    """

    status: ConflictStatus | None = None
    entity_type: str | None = None
    entity_id: int | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    include_resolved: bool = False
    skip: int = 0
    take: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.skip < 0:
            raise ValueError("skip must be non-negative")
        if self.take < 1:
            raise ValueError("take must be positive")

    def to_criteria(self) -> ConflictCriteria:
        if self.status is not None:
            statuses = frozenset({self.status})
            is_resolved = self.status.is_terminal
        else:
            statuses = None
            is_resolved = None if self.include_resolved else False
        return ConflictCriteria(
            is_active=True,
            is_resolved=is_resolved,
            statuses=statuses,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            detected_from=self.from_date,
            detected_to=self.to_date,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictSummary:
    """Aggregate counts over active conflicts."""

    total_conflicts: int
    unresolved: int
    pending_manual: int
    auto_resolved: int
    manually_resolved: int
    ignored: int
    by_entity_type: dict[str, int] = field(default_factory=dict[str, int])
    recent_conflicts: tuple[Conflict, ...] = ()
    generated_at: datetime = field(default_factory=utc_now)
