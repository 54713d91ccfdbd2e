from __future__ import annotations

import logging
from datetime import timedelta
from uuid import uuid4

import pytest

from possync.domain.conflicts import ConflictEngine
from possync.domain.conflicts.batch import BULK_RESOLUTION_NOTES, PURGED_ACTION
from possync.domain.model import ConflictStatus, ResolutionRule, ResolutionType
from tests.helpers.conflicts import BASE_TIME, FakeClock, FakeConflictStore, make_conflict


def test_auto_resolve_all_counts_only_auto_resolved(
    engine: ConflictEngine, store: FakeConflictStore
) -> None:
    engine.rules.add_or_update_rule(
        ResolutionRule(entity_type="Customer", default_resolution=ResolutionType.MANUAL)
    )
    receipt = make_conflict("Receipt", 1)
    product = make_conflict("Product", 2)
    inventory = make_conflict("Inventory", 3)
    customer = make_conflict("Customer", 4)
    store.seed(receipt, product, inventory, customer)

    resolved = engine.batch.auto_resolve_all()

    assert resolved == 3
    assert store.conflicts[customer.id].status is ConflictStatus.PENDING_MANUAL
    assert all(
        store.conflicts[conflict.id].status is ConflictStatus.AUTO_RESOLVED
        for conflict in (receipt, product, inventory)
    )


def test_auto_resolve_all_skips_resolved_and_inactive(
    engine: ConflictEngine, store: FakeConflictStore
) -> None:
    done = make_conflict("Receipt", 1)
    store.seed(done)
    engine.resolver.resolve_by_id(done.id)
    inactive = make_conflict("Receipt", 2)
    inactive.is_active = False
    store.seed(inactive)

    assert engine.batch.auto_resolve_all() == 0
    assert store.conflicts[inactive.id].status is ConflictStatus.DETECTED


def test_auto_resolve_all_continues_after_member_failure(
    engine: ConflictEngine, store: FakeConflictStore, caplog: pytest.LogCaptureFixture
) -> None:
    broken = make_conflict("Receipt", 1)
    healthy = make_conflict("Receipt", 2, detected_at=BASE_TIME + timedelta(minutes=1))
    store.seed(broken, healthy)
    store.failing_ids.add(broken.id)

    with caplog.at_level(logging.ERROR):
        resolved = engine.batch.auto_resolve_all()

    assert resolved == 1
    assert store.conflicts[healthy.id].status is ConflictStatus.AUTO_RESOLVED
    assert str(broken.id) in caplog.text


def test_bulk_resolve_skips_unknown_and_resolved_ids(
    engine: ConflictEngine, store: FakeConflictStore
) -> None:
    first = make_conflict("Product", 1)
    second = make_conflict("Product", 2)
    already = make_conflict("Receipt", 3)
    store.seed(first, second, already)
    engine.resolver.resolve_by_id(already.id)

    resolved = engine.batch.bulk_resolve(
        [first.id, uuid4(), second.id, already.id],
        ResolutionType.LOCAL_WINS,
        user_id=5,
    )

    assert resolved == 2
    for conflict in (first, second):
        stored = store.conflicts[conflict.id]
        assert stored.status is ConflictStatus.RESOLVED
        assert stored.resolved_by_user_id == 5
        assert stored.resolution_notes == BULK_RESOLUTION_NOTES
    assert store.conflicts[already.id].status is ConflictStatus.AUTO_RESOLVED


def test_bulk_resolve_keeps_custom_notes(engine: ConflictEngine, store: FakeConflictStore) -> None:
    conflict = make_conflict()
    store.seed(conflict)

    engine.batch.bulk_resolve([conflict.id], ResolutionType.REMOTE_WINS, 5, notes="Weekly review")

    assert store.conflicts[conflict.id].resolution_notes == "Weekly review"


def test_purge_only_deactivates_resolved_before_cutoff(
    engine: ConflictEngine, store: FakeConflictStore, clock: FakeClock
) -> None:
    old_resolved = make_conflict("Receipt", 1)
    recent_resolved = make_conflict("Receipt", 2)
    old_unresolved = make_conflict("Customer", 3, detected_at=BASE_TIME - timedelta(days=365))
    store.seed(old_resolved, recent_resolved, old_unresolved)
    engine.resolver.resolve_by_id(old_resolved.id)
    clock.advance(days=10)
    engine.resolver.resolve_by_id(recent_resolved.id)
    cutoff = clock.now

    purged = engine.batch.purge_resolved(cutoff)

    assert purged == 1
    assert store.conflicts[old_resolved.id].is_active is False
    assert store.conflicts[recent_resolved.id].is_active is True
    assert store.conflicts[old_unresolved.id].is_active is True
    assert store.history(old_resolved.id)[-1].action == PURGED_ACTION


def test_purge_is_not_repeated_for_inactive_conflicts(
    engine: ConflictEngine, store: FakeConflictStore, clock: FakeClock
) -> None:
    conflict = make_conflict("Receipt")
    store.seed(conflict)
    engine.resolver.resolve_by_id(conflict.id)
    clock.advance(days=1)

    assert engine.batch.purge_resolved(clock.now) == 1
    assert engine.batch.purge_resolved(clock.now) == 0


def test_conflict_summary_counts_active_conflicts(
    engine: ConflictEngine, store: FakeConflictStore, clock: FakeClock
) -> None:
    engine.rules.add_or_update_rule(
        ResolutionRule(entity_type="Customer", default_resolution=ResolutionType.MANUAL)
    )
    auto = make_conflict("Receipt", 1, detected_at=BASE_TIME)
    pending = make_conflict("Customer", 2, detected_at=BASE_TIME + timedelta(minutes=1))
    manual = make_conflict("Product", 3, detected_at=BASE_TIME + timedelta(minutes=2))
    ignored = make_conflict("Product", 4, detected_at=BASE_TIME + timedelta(minutes=3))
    untouched = make_conflict("Product", 5, detected_at=BASE_TIME + timedelta(minutes=4))
    purged = make_conflict("Receipt", 6, detected_at=BASE_TIME - timedelta(days=30))
    store.seed(auto, pending, manual, ignored, untouched, purged)

    engine.resolver.resolve_by_id(purged.id)
    clock.advance(days=1)
    engine.batch.purge_resolved(clock.now)
    engine.resolver.resolve_by_id(auto.id)
    engine.resolver.resolve_by_id(pending.id)
    engine.batch.bulk_resolve([manual.id], ResolutionType.LOCAL_WINS, 1)
    engine.resolver.ignore(ignored.id, 1)

    summary = engine.batch.get_conflict_summary()

    assert summary.total_conflicts == 5
    assert summary.unresolved == 2
    assert summary.pending_manual == 1
    assert summary.auto_resolved == 1
    assert summary.manually_resolved == 1
    assert summary.ignored == 1
    assert summary.by_entity_type == {"Customer": 1, "Product": 3, "Receipt": 1}
    assert [conflict.id for conflict in summary.recent_conflicts] == [
        untouched.id,
        ignored.id,
        manual.id,
        pending.id,
        auto.id,
    ]
    assert summary.generated_at == clock.now


def test_summary_limits_recent_conflicts(store: FakeConflictStore, clock: FakeClock) -> None:
    engine = ConflictEngine.create(store.unit_of_work, clock=clock, recent_conflicts_limit=2)
    store.seed(
        *(
            make_conflict("Product", index, detected_at=BASE_TIME + timedelta(minutes=index))
            for index in range(5)
        )
    )

    summary = engine.batch.get_conflict_summary()

    assert [conflict.entity_id for conflict in summary.recent_conflicts] == [4, 3]
