"""Composition root for the conflict subsystem.

The engine wires detection, resolution, batch sweeps, queries and the audit
trail around one unit-of-work factory and one rule table. It does not pick
adapters; :mod:`possync.app` supplies the SQLAlchemy ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from possync.domain.model import utc_now

from .audit import AuditTrail
from .batch import DEFAULT_RECENT_CONFLICTS, BatchCoordinator
from .detection import ConflictDetector
from .queries import ConflictQueries
from .resolution import ConflictResolver
from .rules import RuleTable

if TYPE_CHECKING:
    from possync.domain.model import Clock
    from possync.domain.ports import ConflictUnitOfWorkFactory


@dataclass(slots=True)
class ConflictEngine:
    rules: RuleTable
    audit: AuditTrail
    detector: ConflictDetector
    resolver: ConflictResolver
    batch: BatchCoordinator
    queries: ConflictQueries

    @classmethod
    def create(
        cls,
        unit_of_work_factory: ConflictUnitOfWorkFactory,
        *,
        rules: RuleTable | None = None,
        clock: Clock = utc_now,
        recent_conflicts_limit: int = DEFAULT_RECENT_CONFLICTS,
    ) -> ConflictEngine:
        rule_table = rules if rules is not None else RuleTable()
        audit = AuditTrail(unit_of_work_factory, clock=clock)
        resolver = ConflictResolver(unit_of_work_factory, rule_table, audit, clock=clock)
        return cls(
            rules=rule_table,
            audit=audit,
            detector=ConflictDetector(unit_of_work_factory, audit, clock=clock),
            resolver=resolver,
            batch=BatchCoordinator(
                unit_of_work_factory,
                resolver,
                audit,
                recent_conflicts_limit=recent_conflicts_limit,
                clock=clock,
            ),
            queries=ConflictQueries(unit_of_work_factory, audit),
        )
