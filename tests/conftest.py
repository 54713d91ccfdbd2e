from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from possync.adapters.sqlalchemy import start_mappers
from possync.adapters.sqlalchemy.migrations import upgrade_head
from possync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyConflictUnitOfWork,
    shutdown,
    startup,
)
from possync.domain.conflicts import ConflictEngine
from tests.helpers.conflicts import FakeClock, FakeConflictStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyConflictUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyConflictUnitOfWork:
        return SqlAlchemyConflictUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeConflictStore:
    return FakeConflictStore()


@pytest.fixture
def engine(store: FakeConflictStore, clock: FakeClock) -> ConflictEngine:
    return ConflictEngine.create(store.unit_of_work, clock=clock)
