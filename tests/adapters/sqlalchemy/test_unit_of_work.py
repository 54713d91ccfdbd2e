from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from possync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyConflictUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from possync.domain.model import AuditEntry, ConflictStatus
from tests.helpers.conflicts import make_conflict

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyConflictUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started() is True


def test_repositories_require_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyConflictUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_commits_conflict_with_audit_entry(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    conflict = make_conflict()

    with SqlAlchemyConflictUnitOfWork() as uow:
        uow.repositories.conflicts.add(conflict)
        uow.repositories.audit_entries.add(
            AuditEntry(
                conflict_id=conflict.id,
                action="Detected",
                new_status=ConflictStatus.DETECTED,
            )
        )
        uow.commit()

    with SqlAlchemyConflictUnitOfWork() as uow:
        assert uow.repositories.conflicts.get(conflict.id) is not None
        assert len(uow.repositories.audit_entries.for_conflict(conflict.id)) == 1


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    conflict = make_conflict()

    with pytest.raises(RuntimeError), SqlAlchemyConflictUnitOfWork() as uow:
        uow.repositories.conflicts.add(conflict)
        raise RuntimeError("boom")

    with SqlAlchemyConflictUnitOfWork() as uow:
        assert uow.repositories.conflicts.get(conflict.id) is None
