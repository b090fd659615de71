# backend/tests/integration/test_concurrent_writes.py
"""
Per-provider write serialization with one session per thread.

Uses a file-backed SQLite database so every thread has its own connection.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
import threading

import pytest
from sqlalchemy.orm import sessionmaker

from availability_engine.core.exceptions import OccupancyConflictException
from availability_engine.database import build_engine, init_db
from availability_engine.engine import AvailabilityEngine
from availability_engine.services.cache_service import ResolvedWindowCache

MONDAY = date(2025, 6, 16)


@pytest.fixture
def file_session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'availability.db'}")
    init_db(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False, future=True)
    engine.dispose()


def _add_concurrently(session_factory, requests):
    barrier = threading.Barrier(len(requests))

    def worker(request):
        provider_id, start, end, booking_id = request
        with session_factory() as db:
            engine = AvailabilityEngine(db, cache=ResolvedWindowCache())
            barrier.wait(5)
            try:
                engine.add_occupancy(provider_id, MONDAY, start, end, booking_id)
                return "ok"
            except OccupancyConflictException:
                return "conflict"

    with ThreadPoolExecutor(max_workers=len(requests)) as pool:
        return list(pool.map(worker, requests))


def test_overlapping_concurrent_adds_only_one_wins(file_session_factory):
    results = _add_concurrently(
        file_session_factory,
        [
            ("dr-smith", "10:00", "11:00", "bk-1"),
            ("dr-smith", "10:30", "11:30", "bk-2"),
        ],
    )
    assert sorted(results) == ["conflict", "ok"]

    with file_session_factory() as db:
        stored = AvailabilityEngine(db, cache=None).list_occupancy("dr-smith", MONDAY)
    assert len(stored) == 1


def test_many_writers_on_the_same_slot(file_session_factory):
    results = _add_concurrently(
        file_session_factory,
        [("dr-smith", "10:00", "11:00", f"bk-{i}") for i in range(6)],
    )
    assert results.count("ok") == 1
    assert results.count("conflict") == 5


def test_different_providers_do_not_block_each_other(file_session_factory):
    results = _add_concurrently(
        file_session_factory,
        [
            ("dr-smith", "10:00", "11:00", "bk-1"),
            ("dr-jones", "10:00", "11:00", "bk-2"),
        ],
    )
    assert results == ["ok", "ok"]


def test_readers_see_the_write_after_commit(file_session_factory):
    with file_session_factory() as writer_db, file_session_factory() as reader_db:
        writer = AvailabilityEngine(writer_db, cache=ResolvedWindowCache())
        reader = AvailabilityEngine(reader_db, cache=ResolvedWindowCache())
        writer.set_base_week("dr-smith", {"MONDAY": [{"start_time": "09:00", "end_time": "17:00"}]})
        assert len(reader.get_final_availability("dr-smith", MONDAY)) == 1

        writer.add_occupancy("dr-smith", MONDAY, "12:00", "13:00", "bk-1")
        assert len(reader.get_final_availability("dr-smith", MONDAY)) == 2
