"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ConflictStatus(StrEnum):
    DETECTED = "Detected"
    AUTO_RESOLVED = "AutoResolved"
    PENDING_MANUAL = "PendingManual"
    RESOLVED = "Resolved"
    IGNORED = "Ignored"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {ConflictStatus.AUTO_RESOLVED, ConflictStatus.RESOLVED, ConflictStatus.IGNORED}
)


class ResolutionType(StrEnum):
    """Which side of a conflict survives."""

    LOCAL_WINS = "LocalWins"
    REMOTE_WINS = "RemoteWins"
    LAST_WRITE_WINS = "LastWriteWins"
    MANUAL = "Manual"
    MERGED = "Merged"


class ResolutionOutcome(StrEnum):
    """Distinguishes policy deferral from genuine failure in resolution results."""

    RESOLVED = "resolved"
    DEFERRED = "deferred"
    FAILED = "failed"
