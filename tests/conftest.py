# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CHANGE_FEED_BACKEND"] = "push"

from frostwatch.db.session import Base
from frostwatch.db.session import get_db as app_get_session
from frostwatch.main import app as fastapi_app
from frostwatch.models import Report
from frostwatch.services.identity import VoterIdentity, hash_value
from frostwatch.services.reports import ReportRegistry

TEST_DB_URL = "sqlite://"
T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class FrozenClock:
    """Manually advanced UTC clock for services that take a ``clock`` argument."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(engine: Engine, session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

        # Services commit for real, so wipe every table between tests.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


def make_identity(seed: int | str) -> VoterIdentity:
    return VoterIdentity(
        fingerprint_hash=hash_value(f"fingerprint-{seed}"),
        ip_hash=hash_value(f"10.0.0.{seed}"),
    )


@pytest.fixture()
def identity() -> VoterIdentity:
    return make_identity(1)


@pytest.fixture()
def identity_factory() -> Callable[[int | str], VoterIdentity]:
    return make_identity


def identity_payload(identity: VoterIdentity) -> dict[str, str]:
    return {"fingerprint_hash": identity.fingerprint_hash, "ip_hash": identity.ip_hash}


@pytest.fixture()
def report(db_session: Session, clock: FrozenClock) -> Report:
    """A report created at the frozen clock's current time."""
    return ReportRegistry(db_session, clock=clock).create_report(52.52, 13.405)


@pytest.fixture()
def live_report(db_session: Session) -> Report:
    """A report created against the wall clock, visible to the API."""
    return ReportRegistry(db_session).create_report(52.52, 13.405)
