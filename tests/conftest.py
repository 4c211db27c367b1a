from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from triplink.adapters.sqlalchemy import start_mappers
from triplink.adapters.sqlalchemy.migrations import upgrade_head
from triplink.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLinkUnitOfWork,
    SqlAlchemyTripUnitOfWork,
    shutdown,
    startup,
)
from triplink.domain.access import TripAccessAuthorizer
from triplink.domain.link_graph import LinkGraphService

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
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def link_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyLinkUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyLinkUnitOfWork:
        return SqlAlchemyLinkUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def trip_unit_of_work(
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> Callable[[], SqlAlchemyTripUnitOfWork]:
    _ = link_unit_of_work

    def factory() -> SqlAlchemyTripUnitOfWork:
        return SqlAlchemyTripUnitOfWork()

    return factory


@pytest.fixture
def authorizer(
    trip_unit_of_work: Callable[[], SqlAlchemyTripUnitOfWork],
) -> TripAccessAuthorizer:
    return TripAccessAuthorizer(trip_unit_of_work)


@pytest.fixture
def link_service(
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
    authorizer: TripAccessAuthorizer,
) -> LinkGraphService:
    return LinkGraphService(unit_of_work_factory=link_unit_of_work, authorizer=authorizer)
