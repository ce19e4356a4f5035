# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("QR_SECRET_KEY", "test-qr-secret")

from campus_checkin.api.v1 import dependencies as deps
from campus_checkin.core.security import create_access_token
from campus_checkin.db.session import Base
from campus_checkin.db.session import get_db as app_get_session
from campus_checkin.main import app as fastapi_app
from campus_checkin.models import (
    Club,
    ClubMember,
    ClubMemberRole,
    Event,
    Profile,
    UserRole,
)
from campus_checkin.services.attendance import AttendanceRecorder
from campus_checkin.services.generator import TokenGenerator
from campus_checkin.services.replay import ReplayGuard
from campus_checkin.services.signing import SignatureEngine
from campus_checkin.services.store import SqlRecordStore
from campus_checkin.services.validator import TokenValidator

TEST_DB_URL = "sqlite://"
TEST_QR_SECRET = "test-qr-secret"


class FrozenClock:
    """Controllable wall clock returning timezone-aware datetimes."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 3, 14, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


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
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def signature_engine() -> SignatureEngine:
    return SignatureEngine(TEST_QR_SECRET)


@pytest.fixture()
def replay_guard(clock: FrozenClock) -> ReplayGuard:
    return ReplayGuard(window=timedelta(minutes=5), clock=clock)


@pytest.fixture()
def generator(signature_engine: SignatureEngine, clock: FrozenClock) -> TokenGenerator:
    return TokenGenerator(signature_engine, clock=clock)


@pytest.fixture()
def validator(
    signature_engine: SignatureEngine,
    replay_guard: ReplayGuard,
    clock: FrozenClock,
) -> TokenValidator:
    return TokenValidator(signature_engine, replay_guard, clock=clock)


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> SqlRecordStore:
    return SqlRecordStore(session_factory, timeout_seconds=5.0)


@pytest.fixture()
def recorder(store: SqlRecordStore, validator: TokenValidator) -> AttendanceRecorder:
    return AttendanceRecorder(store, validator)


def _add(db_session: Session, row: Any) -> Any:
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture()
def attendee(db_session: Session) -> Profile:
    """A student who checks in to events."""
    return _add(
        db_session,
        Profile(user_id="student-1", name="Asha Rao", usn="1CC21CS001", role=UserRole.ATTENDEE),
    )


@pytest.fixture()
def other_attendee(db_session: Session) -> Profile:
    return _add(
        db_session,
        Profile(user_id="student-2", name="Ben Okafor", usn="1CC21CS002", role=UserRole.ATTENDEE),
    )


@pytest.fixture()
def club_admin(db_session: Session) -> Profile:
    """Admin of the robotics club."""
    return _add(
        db_session,
        Profile(user_id="club-admin-1", name="Carla Diaz", usn="1CC20EC010", role=UserRole.CLUB_ADMIN),
    )


@pytest.fixture()
def college_admin(db_session: Session) -> Profile:
    return _add(
        db_session,
        Profile(user_id="college-admin", name="Dean Office", usn="ADMIN001", role=UserRole.COLLEGE_ADMIN),
    )


@pytest.fixture()
def club(db_session: Session, club_admin: Profile) -> Club:
    club = _add(
        db_session,
        Club(id="club-robotics", name="Robotics Club", approved=True, created_by=club_admin.user_id),
    )
    _add(
        db_session,
        ClubMember(club_id=club.id, profile_id=club_admin.user_id, role=ClubMemberRole.ADMIN),
    )
    return club


def _make_event(db_session: Session, club: Club, start: datetime, end: datetime) -> Event:
    return _add(
        db_session,
        Event(
            id="E1",
            club_id=club.id,
            title="Line Follower Workshop",
            location="Lab 3",
            start_time=start,
            end_time=end,
            capacity=40,
        ),
    )


@pytest.fixture()
def event(db_session: Session, club: Club, clock: FrozenClock) -> Event:
    """Event running on the frozen clock: started 30 minutes ago, ends in 2 hours."""
    return _make_event(
        db_session, club, clock() - timedelta(minutes=30), clock() + timedelta(hours=2)
    )


@pytest.fixture()
def live_event(db_session: Session, club: Club) -> Event:
    """Event running on the real clock, for API tests."""
    now = datetime.now(UTC)
    return _make_event(db_session, club, now - timedelta(minutes=30), now + timedelta(hours=2))


@pytest.fixture()
def live_generator(signature_engine: SignatureEngine) -> TokenGenerator:
    return TokenGenerator(signature_engine)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    session_factory: sessionmaker[Session],
    store: SqlRecordStore,
    signature_engine: SignatureEngine,
) -> Iterator[None]:
    live_guard = ReplayGuard(window=timedelta(minutes=5))

    def _get_session_override() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    overrides = {
        app_get_session: _get_session_override,
        deps.get_record_store_dep: lambda: store,
        deps.get_replay_guard_dep: lambda: live_guard,
        deps.get_signature_engine_dep: lambda: signature_engine,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def auth_headers(profile: Profile) -> dict[str, str]:
    """Return authorization headers for ``profile``."""
    return {"Authorization": f"Bearer {create_access_token(profile.user_id)}"}
