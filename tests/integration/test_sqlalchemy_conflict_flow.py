"""End-to-end conflict flows against the SQLAlchemy adapter."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from possync.domain.conflicts import ConflictEngine, ConflictQuery, ManualResolveRequest
from possync.domain.model import ConflictStatus, ResolutionRule, ResolutionType
from tests.helpers.conflicts import BASE_TIME, FakeClock

if TYPE_CHECKING:
    from collections.abc import Callable

    from possync.adapters.sqlalchemy.unit_of_work import SqlAlchemyConflictUnitOfWork


@pytest.fixture
def sql_engine(
    sqlite_unit_of_work: Callable[[], SqlAlchemyConflictUnitOfWork],
    clock: FakeClock,
) -> ConflictEngine:
    return ConflictEngine.create(sqlite_unit_of_work, clock=clock)


def test_detected_product_conflict_lists_both_fields(sql_engine: ConflictEngine) -> None:
    conflict = sql_engine.detector.detect_conflict(
        "Product",
        1,
        '{"name":"Local","price":10}',
        '{"name":"Remote","price":15}',
        BASE_TIME,
        BASE_TIME + timedelta(minutes=10),
    )

    assert conflict is not None
    stored = sql_engine.queries.get_conflict(conflict.id)
    assert stored is not None
    assert stored.status is ConflictStatus.DETECTED
    assert set(stored.conflicting_fields) == {"name", "price"}
    assert [entry.action for entry in sql_engine.queries.history(conflict.id)] == ["Detected"]


def test_receipt_conflict_keeps_local_copy(sql_engine: ConflictEngine) -> None:
    local = '{"total":42.50,"lines":3}'
    conflict = sql_engine.detector.detect_conflict(
        "Receipt", 77, local, '{"total":40.00,"lines":3}', BASE_TIME, BASE_TIME
    )
    assert conflict is not None

    result = sql_engine.resolver.resolve_by_id(conflict.id)

    assert result.success is True
    assert result.applied_resolution is ResolutionType.LOCAL_WINS
    assert result.resulting_data == local


def test_inventory_conflict_uses_newer_local_count(sql_engine: ConflictEngine) -> None:
    local = '{"qty":12}'
    conflict = sql_engine.detector.detect_conflict(
        "Inventory", 5, local, '{"qty":9}', BASE_TIME + timedelta(hours=1), BASE_TIME
    )
    assert conflict is not None

    result = sql_engine.resolver.resolve(conflict)

    assert result.applied_resolution is ResolutionType.LAST_WRITE_WINS
    assert result.resulting_data == local


def test_points_balance_conflict_waits_for_operator(sql_engine: ConflictEngine) -> None:
    sql_engine.rules.add_or_update_rule(
        ResolutionRule(
            entity_type="Customer",
            property_name="PointsBalance",
            default_resolution=ResolutionType.MANUAL,
            require_manual_review=True,
        )
    )
    conflict = sql_engine.detector.detect_conflict(
        "Customer", 3, '{"PointsBalance":500}', '{"PointsBalance":350}', BASE_TIME, BASE_TIME
    )
    assert conflict is not None

    result = sql_engine.resolver.resolve(conflict)

    assert result.success is False
    assert result.new_status is ConflictStatus.PENDING_MANUAL
    pending = sql_engine.queries.query_conflicts(
        ConflictQuery(status=ConflictStatus.PENDING_MANUAL)
    )
    assert [item.id for item in pending] == [conflict.id]


def test_operator_decision_is_final(sql_engine: ConflictEngine, clock: FakeClock) -> None:
    conflict = sql_engine.detector.detect_conflict(
        "Product", 9, '{"name":"A"}', '{"name":"B"}', BASE_TIME, BASE_TIME
    )
    assert conflict is not None
    clock.advance(minutes=5)
    request = ManualResolveRequest(
        conflict_id=conflict.id,
        resolution=ResolutionType.LOCAL_WINS,
        resolved_by_user_id=12,
        notes="Store manager override",
    )

    first = sql_engine.resolver.manual_resolve(request)
    second = sql_engine.resolver.manual_resolve(request)

    assert first.success is True
    assert second.success is False
    assert "already resolved" in (second.error_message or "")
    stored = sql_engine.queries.get_conflict(conflict.id)
    assert stored is not None
    assert stored.resolved_by_user_id == 12
    assert stored.resolved_at == BASE_TIME + timedelta(minutes=5)
    assert len(sql_engine.queries.history(conflict.id)) == 2


def test_sweep_then_purge_then_summary(sql_engine: ConflictEngine, clock: FakeClock) -> None:
    detector = sql_engine.detector
    receipt = detector.detect_conflict("Receipt", 1, '{"a":1}', '{"a":2}', BASE_TIME, BASE_TIME)
    clock.advance(minutes=1)
    detector.detect_conflict("Order", 2, '{"a":1}', '{"a":2}', BASE_TIME, BASE_TIME)
    clock.advance(minutes=1)
    detector.detect_conflict(
        "LoyaltyMember", 3, '{"Points":1}', '{"Points":2}', BASE_TIME, BASE_TIME
    )
    clock.advance(minutes=1)
    ignored = detector.detect_conflict("Category", 4, '{"a":1}', '{"a":2}', BASE_TIME, BASE_TIME)
    assert receipt is not None
    assert ignored is not None
    assert sql_engine.resolver.ignore(ignored.id, 2, "Obsolete category") is True

    assert sql_engine.batch.auto_resolve_all() == 2

    clock.advance(days=100)
    assert sql_engine.batch.purge_resolved(clock.now - timedelta(days=90)) == 3

    summary = sql_engine.batch.get_conflict_summary()
    assert summary.total_conflicts == 1
    assert summary.pending_manual == 1
    assert summary.by_entity_type == {"LoyaltyMember": 1}
    purged = sql_engine.queries.get_conflict(receipt.id)
    assert purged is not None
    assert purged.is_active is False
    assert purged.status is ConflictStatus.AUTO_RESOLVED


def test_stale_copy_cannot_override_operator_decision(sql_engine: ConflictEngine) -> None:
    conflict = sql_engine.detector.detect_conflict(
        "Receipt", 21, '{"total":5}', '{"total":6}', BASE_TIME, BASE_TIME
    )
    assert conflict is not None
    decision = sql_engine.resolver.manual_resolve(
        ManualResolveRequest(
            conflict_id=conflict.id,
            resolution=ResolutionType.REMOTE_WINS,
            resolved_by_user_id=7,
        )
    )
    assert decision.success is True

    result = sql_engine.resolver.resolve(conflict)

    assert result.success is False
    assert "already resolved" in (result.error_message or "")
    stored = sql_engine.queries.get_conflict(conflict.id)
    assert stored is not None
    assert stored.status is ConflictStatus.RESOLVED
    assert stored.resolved_by_user_id == 7
    assert stored.applied_resolution is ResolutionType.REMOTE_WINS
    assert [entry.action for entry in sql_engine.queries.history(conflict.id)] == [
        "ManualResolved",
        "Detected",
    ]


def test_absent_local_payload_is_stored_as_blank(sql_engine: ConflictEngine) -> None:
    conflict = sql_engine.detector.detect_conflict(
        "Product", 30, None, '{"a":1}', BASE_TIME, BASE_TIME
    )

    assert conflict is not None
    assert conflict.local_data == ""
    stored = sql_engine.queries.get_conflict(conflict.id)
    assert stored is not None
    assert stored.local_data == ""
    assert stored.remote_data == '{"a":1}'
    assert stored.conflicting_fields == ["a"]
