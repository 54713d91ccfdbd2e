"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

from possync.adapters.sqlalchemy.mappings import conflict_audit_entry_table, sync_conflict_table
from possync.domain.model import AuditEntry, Conflict

if TYPE_CHECKING:
    import uuid

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session

    from possync.domain.model import ConflictCriteria


def criteria_clauses(criteria: ConflictCriteria) -> list[ColumnElement[bool]]:
    """Translate a ``ConflictCriteria`` into ``WHERE`` clauses on ``sync_conflict``."""

    columns = sync_conflict_table.c
    clauses: list[ColumnElement[bool]] = []
    if criteria.is_active is not None:
        clauses.append(columns.is_active.is_(criteria.is_active))
    if criteria.is_resolved is not None:
        clauses.append(columns.is_resolved.is_(criteria.is_resolved))
    if criteria.statuses is not None:
        clauses.append(columns.status.in_(sorted(criteria.statuses)))
    if criteria.entity_type is not None:
        clauses.append(columns.entity_type == criteria.entity_type)
    if criteria.entity_id is not None:
        clauses.append(columns.entity_id == criteria.entity_id)
    if criteria.detected_from is not None:
        clauses.append(columns.detected_at >= criteria.detected_from)
    if criteria.detected_to is not None:
        clauses.append(columns.detected_at <= criteria.detected_to)
    if criteria.resolved_before is not None:
        clauses.append(columns.resolved_at.is_not(None))
        clauses.append(columns.resolved_at < criteria.resolved_before)
    if criteria.resolved_by_user is True:
        clauses.append(columns.resolved_by_user_id.is_not(None))
    elif criteria.resolved_by_user is False:
        clauses.append(columns.resolved_by_user_id.is_(None))
    return clauses


class SqlAlchemyConflictRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Conflict) -> None:
        self.session.add(entity)
        self.session.flush()

    def get(self, conflict_id: uuid.UUID) -> Conflict | None:
        return self.session.get(Conflict, conflict_id)

    def update(self, conflict: Conflict) -> None:
        self.session.merge(conflict)
        self.session.flush()

    def find(
        self,
        criteria: ConflictCriteria,
        *,
        offset: int = 0,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[Conflict]:
        detected_at = sync_conflict_table.c.detected_at
        stmt: Select[tuple[Conflict]] = (
            select(Conflict)
            .where(*criteria_clauses(criteria))
            .order_by(detected_at.desc() if newest_first else detected_at.asc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def count(self, criteria: ConflictCriteria) -> int:
        stmt = (
            select(func.count())
            .select_from(sync_conflict_table)
            .where(*criteria_clauses(criteria))
        )
        return self.session.execute(stmt).scalar_one()

    def count_by_entity_type(self, criteria: ConflictCriteria) -> dict[str, int]:
        entity_type = sync_conflict_table.c.entity_type
        stmt = (
            select(entity_type, func.count())
            .where(*criteria_clauses(criteria))
            .group_by(entity_type)
            .order_by(entity_type)
        )
        return {name: total for name, total in self.session.execute(stmt).tuples()}


class SqlAlchemyAuditEntryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: AuditEntry) -> None:
        self.session.add(entity)

    def for_conflict(self, conflict_id: uuid.UUID) -> list[AuditEntry]:
        stmt = (
            select(AuditEntry)
            .where(conflict_audit_entry_table.c.conflict_id == conflict_id)
            .order_by(conflict_audit_entry_table.c.timestamp.desc())
        )
        return list(self.session.execute(stmt).scalars())
