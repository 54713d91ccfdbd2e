"""Sync conflict detection and resolution.

Flow:
1) ``ConflictDetector`` compares local and remote payloads and persists real
   disagreements as ``Detected`` conflicts
2) ``ConflictResolver`` applies the ``RuleTable`` policy automatically or an
   operator's decision manually
3) ``BatchCoordinator`` sweeps pending conflicts and purges old resolved ones
4) every status change lands in the ``AuditTrail`` in the same transaction
"""

from __future__ import annotations

from .audit import AuditTrail
from .batch import BatchCoordinator
from .contracts import ConflictQuery, ConflictSummary, ManualResolveRequest, ResolutionResult
from .detection import ConflictDetector
from .differ import (
    MalformedDocumentError,
    conflicting_fields,
    has_meaningful_difference,
    merge_documents,
)
from .engine import ConflictEngine
from .queries import ConflictQueries
from .resolution import ConflictResolver
from .rules import DEFAULT_CONFLICT_RULES, RuleTable, fallback_rule

__all__ = [
    "DEFAULT_CONFLICT_RULES",
    "AuditTrail",
    "BatchCoordinator",
    "ConflictDetector",
    "ConflictEngine",
    "ConflictQueries",
    "ConflictQuery",
    "ConflictResolver",
    "ConflictSummary",
    "MalformedDocumentError",
    "ManualResolveRequest",
    "ResolutionResult",
    "RuleTable",
    "conflicting_fields",
    "fallback_rule",
    "has_meaningful_difference",
    "merge_documents",
]
