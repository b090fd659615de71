# backend/tests/conftest.py
"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database so services are free to
commit. The resolved-window cache uses the process-wide memory backend and
is cleared around each test.
"""

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from availability_engine.core import provider_lock
from availability_engine.core.config import settings
from availability_engine.database import build_engine, init_db
from availability_engine.engine import AvailabilityEngine
from availability_engine.services.cache_service import ResolvedWindowCache

settings.is_testing = True

PROVIDER = "dr-smith"


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch):
    """Keep redis out of tests and start each test with an empty cache."""
    monkeypatch.setattr(settings, "redis_url", None)
    monkeypatch.setattr(settings, "default_timezone", "UTC")
    provider_lock.set_redis_client(None)
    ResolvedWindowCache().clear()
    yield
    ResolvedWindowCache().clear()
    provider_lock.set_redis_client(None)


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def unit_db(db_engine) -> Session:
    """Session on a fresh in-memory database."""
    SessionLocal = sessionmaker(bind=db_engine, expire_on_commit=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache() -> ResolvedWindowCache:
    return ResolvedWindowCache()


@pytest.fixture
def engine(unit_db, cache) -> AvailabilityEngine:
    return AvailabilityEngine(unit_db, cache=cache)


@pytest.fixture
def uncached_engine(unit_db) -> AvailabilityEngine:
    return AvailabilityEngine(unit_db, cache=None)


@pytest.fixture
def weekday_engine(engine) -> AvailabilityEngine:
    """Engine whose provider works 09:00-17:00 Monday to Friday, in UTC."""
    engine.set_base_week(
        PROVIDER,
        {
            day: [{"start_time": "09:00", "end_time": "17:00"}]
            for day in ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY")
        },
    )
    return engine
