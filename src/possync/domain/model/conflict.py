"""The sync conflict aggregate and the predicate object used to select it.

A ``Conflict`` owns its status machine. ``status`` and ``is_resolved`` only
change through the transition methods below, which keep the two in step and
refuse transitions out of terminal states.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from .clock import as_utc, utc_now
from .enums import ConflictStatus, ResolutionType

if TYPE_CHECKING:
    from datetime import datetime

IGNORED_PREFIX = "[IGNORED]"
APPLIED_MARKER = "[APPLIED]"


def new_id() -> UUID:
    return uuid4()


@dataclass(eq=False, kw_only=True)
class Conflict:
    """Divergent local and remote copies of one business record."""

    entity_type: str
    entity_id: int
    local_data: str
    remote_data: str
    local_timestamp: datetime
    remote_timestamp: datetime
    conflicting_fields: list[str] = field(default_factory=list[str])
    sync_batch_id: int | None = None
    status: ConflictStatus = ConflictStatus.DETECTED
    is_resolved: bool = False
    resolved_at: datetime | None = None
    resolved_by_user_id: int | None = None
    resolution_notes: str | None = None
    applied_resolution: ResolutionType | None = None
    is_active: bool = True
    detected_at: datetime = field(default_factory=utc_now)
    id: UUID = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if not self.entity_type or not self.entity_type.strip():
            raise ValueError("entity_type is required")
        self.local_timestamp = as_utc(self.local_timestamp)
        self.remote_timestamp = as_utc(self.remote_timestamp)

    @property
    def is_ignored(self) -> bool:
        return self.status is ConflictStatus.IGNORED

    @property
    def is_auto_resolved(self) -> bool:
        return self.is_resolved and self.resolved_by_user_id is None

    @property
    def local_is_newer(self) -> bool:
        """Whether the local copy was written strictly after the remote one."""
        return as_utc(self.local_timestamp) > as_utc(self.remote_timestamp)

    def defer_to_manual_review(self) -> None:
        self._require_open("defer")
        self.status = ConflictStatus.PENDING_MANUAL

    def mark_auto_resolved(
        self,
        resolution: ResolutionType,
        *,
        at: datetime,
        notes: str | None = None,
    ) -> None:
        self._require_open("auto-resolve")
        self._close(ConflictStatus.AUTO_RESOLVED, at=at, notes=notes)
        self.applied_resolution = resolution
        self.resolved_by_user_id = None

    def mark_resolved(
        self,
        resolution: ResolutionType,
        *,
        user_id: int,
        at: datetime,
        notes: str | None = None,
    ) -> None:
        self._require_open("resolve")
        self._close(ConflictStatus.RESOLVED, at=at, notes=notes)
        self.applied_resolution = resolution
        self.resolved_by_user_id = user_id

    def mark_ignored(self, *, user_id: int, at: datetime, reason: str | None = None) -> None:
        self._require_open("ignore")
        self._close(
            ConflictStatus.IGNORED,
            at=at,
            notes=f"{IGNORED_PREFIX} {reason or 'No reason provided'}",
        )
        self.resolved_by_user_id = user_id

    def mark_applied(self) -> None:
        if not self.is_resolved or self.is_ignored:
            raise ValueError("only resolved conflicts can be applied")
        if self.resolution_notes:
            self.resolution_notes = f"{self.resolution_notes} {APPLIED_MARKER}"
        else:
            self.resolution_notes = APPLIED_MARKER

    def deactivate(self) -> None:
        if not self.is_resolved:
            raise ValueError("unresolved conflicts cannot be purged")
        self.is_active = False

    def _require_open(self, action: str) -> None:
        if self.is_resolved or self.status.is_terminal:
            raise ValueError(f"cannot {action} conflict {self.id}: already resolved")

    def _close(self, status: ConflictStatus, *, at: datetime, notes: str | None) -> None:
        self.status = status
        self.is_resolved = True
        self.resolved_at = as_utc(at)
        self.resolution_notes = notes


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictCriteria:
    """Declarative predicate over conflicts.

    In-memory repositories evaluate it with :meth:`matches`; the SQLAlchemy
    adapter translates the same fields into a ``WHERE`` clause. ``None`` means
    "do not filter on this field".
    """

    is_active: bool | None = True
    is_resolved: bool | None = None
    statuses: frozenset[ConflictStatus] | None = None
    entity_type: str | None = None
    entity_id: int | None = None
    detected_from: datetime | None = None
    detected_to: datetime | None = None
    resolved_before: datetime | None = None
    resolved_by_user: bool | None = None

    def matches(self, conflict: Conflict) -> bool:  # noqa: PLR0911
        if self.is_active is not None and conflict.is_active != self.is_active:
            return False
        if self.is_resolved is not None and conflict.is_resolved != self.is_resolved:
            return False
        if self.statuses is not None and conflict.status not in self.statuses:
            return False
        if self.entity_type is not None and conflict.entity_type != self.entity_type:
            return False
        if self.entity_id is not None and conflict.entity_id != self.entity_id:
            return False
        detected_at = as_utc(conflict.detected_at)
        if self.detected_from is not None and detected_at < as_utc(self.detected_from):
            return False
        if self.detected_to is not None and detected_at > as_utc(self.detected_to):
            return False
        if self.resolved_before is not None and (
            conflict.resolved_at is None
            or as_utc(conflict.resolved_at) >= as_utc(self.resolved_before)
        ):
            return False
        if self.resolved_by_user is not None:
            has_user = conflict.resolved_by_user_id is not None
            if has_user != self.resolved_by_user:
                return False
        return True
