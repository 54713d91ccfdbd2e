"""Application orchestration entry points."""

from __future__ import annotations

from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from possync.adapters.rules_file import load_rules
from possync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyConflictUnitOfWork,
    is_started,
    startup,
)
from possync.config import get_conflict_config
from possync.domain.conflicts import ConflictEngine, ConflictQuery, RuleTable
from possync.domain.model import utc_now

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from possync.config import ConflictConfig
    from possync.domain.conflicts import ConflictSummary
    from possync.domain.model import AuditEntry, Conflict, ResolutionRule
    from possync.domain.ports import ConflictUnitOfWorkFactory

log = getLogger(__name__)


def build_rule_table(config: ConflictConfig | None = None) -> RuleTable:
    """Seed a rule table with the defaults, then apply overrides from the rules file."""

    effective_config = config or get_conflict_config()
    table = RuleTable()
    if effective_config.rules_file is not None:
        for rule in load_rules(effective_config.rules_file):
            table.add_or_update_rule(rule)
    return table


def build_conflict_engine(
    *,
    config: ConflictConfig | None = None,
    unit_of_work_factory: ConflictUnitOfWorkFactory | None = None,
    rules: RuleTable | None = None,
) -> ConflictEngine:
    """Wire a ``ConflictEngine`` against the configured database."""

    effective_config = config or get_conflict_config()
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyConflictUnitOfWork
    return ConflictEngine.create(
        unit_of_work_factory,
        rules=rules if rules is not None else build_rule_table(effective_config),
        recent_conflicts_limit=effective_config.recent_conflicts_limit,
    )


def auto_resolve_conflicts(*, engine: ConflictEngine | None = None) -> int:
    effective_engine = engine or build_conflict_engine()
    log.info("Starting auto-resolution sweep")
    return effective_engine.batch.auto_resolve_all()


def purge_resolved_conflicts(
    *,
    older_than_days: int | None = None,
    now: datetime | None = None,
    engine: ConflictEngine | None = None,
    config: ConflictConfig | None = None,
) -> int:
    """Soft-delete conflicts resolved longer ago than the retention window."""

    effective_config = config or get_conflict_config()
    days = older_than_days if older_than_days is not None else effective_config.retention_days
    if days < 0:
        raise ValueError("older_than_days must be non-negative")
    cutoff = (now or utc_now()) - timedelta(days=days)
    effective_engine = engine or build_conflict_engine(config=effective_config)
    log.info("Purging conflicts resolved before %s", cutoff.isoformat())
    return effective_engine.batch.purge_resolved(cutoff)


def conflict_summary(*, engine: ConflictEngine | None = None) -> ConflictSummary:
    return (engine or build_conflict_engine()).batch.get_conflict_summary()


def list_rules(*, engine: ConflictEngine | None = None) -> list[ResolutionRule]:
    return (engine or build_conflict_engine()).rules.get_all_rules()


def conflict_history(
    conflict_id: UUID,
    *,
    engine: ConflictEngine | None = None,
) -> list[AuditEntry]:
    return (engine or build_conflict_engine()).queries.history(conflict_id)


def list_pending_conflicts(
    *,
    entity_type: str | None = None,
    page: int = 0,
    engine: ConflictEngine | None = None,
    config: ConflictConfig | None = None,
) -> list[Conflict]:
    """Return one page of unresolved conflicts, oldest first."""

    if page < 0:
        raise ValueError("page must be non-negative")
    effective_config = config or get_conflict_config()
    page_size = effective_config.query_page_size
    query = ConflictQuery(entity_type=entity_type, skip=page * page_size, take=page_size)
    effective_engine = engine or build_conflict_engine(config=effective_config)
    return effective_engine.queries.query_conflicts(query)
