"""Public domain model surface."""

from __future__ import annotations

from possync.domain.model.audit import AuditEntry
from possync.domain.model.clock import Clock, as_utc, utc_now
from possync.domain.model.conflict import (
    APPLIED_MARKER,
    IGNORED_PREFIX,
    Conflict,
    ConflictCriteria,
)
from possync.domain.model.enums import ConflictStatus, ResolutionOutcome, ResolutionType
from possync.domain.model.rules import ResolutionRule, RuleKey

__all__ = [
    "APPLIED_MARKER",
    "IGNORED_PREFIX",
    "AuditEntry",
    "Clock",
    "Conflict",
    "ConflictCriteria",
    "ConflictStatus",
    "ResolutionOutcome",
    "ResolutionRule",
    "ResolutionType",
    "RuleKey",
    "as_utc",
    "utc_now",
]
