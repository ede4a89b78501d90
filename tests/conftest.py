# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("IDENTITY_TOKEN_SECRET", "test-identity-secret")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="campus-crew-media-"))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from campus_crew.api.v1 import dependencies
from campus_crew.core.security import create_access_token
from campus_crew.db.session import Base
from campus_crew.db.session import get_db as app_get_session
from campus_crew.db.time import utcnow
from campus_crew.main import app as fastapi_app
from campus_crew.models import Gig, Offer, Profile
from campus_crew.schemas.gig import GigCreate
from campus_crew.schemas.offer import OfferCreate
from campus_crew.services.admin_service import AdminLoginGuard
from campus_crew.services.blob_store import LocalBlobStore
from campus_crew.services.gig_service import create_gig
from campus_crew.services.live_feed import LiveFeedHub
from campus_crew.services.offer_service import create_offer
from campus_crew.services.otp import LoggingSmsSender, OtpService, OtpSessionStore

TEST_DB_URL = "sqlite://"


class FakeClock:
    """Manually advanced clock for OTP and lock-out tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utcnow()

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
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit, so every test empties the tables afterwards.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def hub() -> LiveFeedHub:
    return LiveFeedHub()


@pytest.fixture()
def blob_store(tmp_path: Any) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "media", "/media")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sms_sender() -> LoggingSmsSender:
    return LoggingSmsSender()


@pytest.fixture()
def otp_service(sms_sender: LoggingSmsSender, clock: FakeClock) -> OtpService:
    return OtpService(OtpSessionStore(), sms_sender, clock)


@pytest.fixture()
def admin_guard(clock: FakeClock) -> AdminLoginGuard:
    return AdminLoginGuard(max_attempts=3, lockout=timedelta(minutes=5), clock=clock)


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    hub: LiveFeedHub,
    blob_store: LocalBlobStore,
    otp_service: OtpService,
    admin_guard: AdminLoginGuard,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    @contextmanager
    def _borrow_session() -> Iterator[Session]:
        yield db_session

    overrides: dict[Callable[..., Any], Callable[..., Any]] = {
        app_get_session: _get_session_override,
        dependencies.get_session_factory_dep: lambda: _borrow_session,
        dependencies.get_hub_dep: lambda: hub,
        dependencies.get_blob_store_dep: lambda: blob_store,
        dependencies.get_otp_service_dep: lambda: otp_service,
        dependencies.get_admin_guard_dep: lambda: admin_guard,
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


def _make_profile(db: Session, principal_id: str, first: str, last: str, college: str) -> Profile:
    now = utcnow()
    profile = Profile(
        id=principal_id,
        email=f"{first.lower()}@example.edu",
        first_name=first,
        last_name=last,
        college=college,
        auth_method="google",
        created_at=now,
        updated_at=now,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture()
def student_a(db_session: Session) -> Profile:
    """Gig poster at college X."""
    return _make_profile(db_session, "google:alice", "Alice", "Rao", "X")


@pytest.fixture()
def student_b(db_session: Session) -> Profile:
    """Student at college X who makes offers."""
    return _make_profile(db_session, "google:bob", "Bob", "Menon", "X")


@pytest.fixture()
def student_c(db_session: Session) -> Profile:
    """Second offerer at college X."""
    return _make_profile(db_session, "google:chitra", "Chitra", "Das", "X")


def bearer(principal_id: str, **kwargs: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(principal_id, **kwargs)}"}


@pytest.fixture()
def auth_a(student_a: Profile) -> dict[str, str]:
    return bearer(student_a.id)


@pytest.fixture()
def auth_b(student_b: Profile) -> dict[str, str]:
    return bearer(student_b.id)


@pytest.fixture()
def admin_auth() -> dict[str, str]:
    return bearer("admin:admin", role="admin")


@pytest.fixture()
def gig_factory(db_session: Session) -> Callable[..., Gig]:
    def _create(poster: Profile, **overrides: Any) -> Gig:
        data: dict[str, Any] = {
            "title": "Essay editing",
            "description": "Proofread a 2000 word essay",
            "category": "Academic",
            "budget": 300,
            "deadline": utcnow() + timedelta(days=3),
            "location": "Library",
        }
        data.update(overrides)
        return create_gig(db_session, GigCreate(**data), poster)

    return _create


@pytest.fixture()
def offer_factory(db_session: Session) -> Callable[..., Offer]:
    def _create(gig: Gig, offerer: Profile, **overrides: Any) -> Offer:
        data: dict[str, Any] = {
            "gig_id": gig.id,
            "message": "I can do this by tomorrow",
            "proposed_budget": 250,
        }
        data.update(overrides)
        return create_offer(db_session, OfferCreate(**data), offerer)

    return _create


@pytest.fixture()
def gig(gig_factory: Callable[..., Gig], student_a: Profile) -> Gig:
    return gig_factory(student_a)


@pytest.fixture()
def offer(offer_factory: Callable[..., Offer], gig: Gig, student_b: Profile) -> Offer:
    return offer_factory(gig, student_b)


@pytest.fixture()
def make_auth() -> Callable[..., dict[str, str]]:
    """Return a helper building bearer headers for any principal."""
    return bearer
