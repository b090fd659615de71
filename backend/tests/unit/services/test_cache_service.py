# backend/tests/unit/services/test_cache_service.py
from datetime import date, datetime, timedelta
import fnmatch
import json

import pytest
import pytz
from redis.exceptions import ConnectionError as RedisConnectionError

from availability_engine.core.config import settings
from availability_engine.engine import AvailabilityEngine
from availability_engine.services import cache_service as cache_module
from availability_engine.services.availability_resolver import ResolvedWindow
from availability_engine.services.cache_service import (
    CacheKeyBuilder,
    ResolvedWindowCache,
    payload_to_windows,
    windows_to_payload,
)

MONDAY = date(2025, 6, 16)
NEW_YORK = pytz.timezone("America/New_York")


class FakeRedis:
    def __init__(self) -> None:
        self.store = {}
        self.expire_times = {}
        self.fail = False
        self.failing_ops = set()

    def _check(self, op) -> None:
        if self.fail or op in self.failing_ops:
            raise RedisConnectionError("redis down")

    def get(self, key):
        self._check("get")
        value = self.store.get(key)
        return None if value is None else str(value)

    def setex(self, key, seconds, value):
        self._check("setex")
        self.store[key] = value
        self.expire_times[key] = seconds

    def incr(self, key):
        self._check("incr")
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    def delete(self, *keys):
        self._check("delete")
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def scan_iter(self, match=None):
        self._check("scan_iter")
        return [key for key in list(self.store) if match is None or fnmatch.fnmatch(key, match)]


def sample_windows():
    start = NEW_YORK.localize(datetime(2025, 6, 16, 9, 0))
    return [
        ResolvedWindow(MONDAY, start, start + timedelta(hours=3), True),
        ResolvedWindow(MONDAY, start + timedelta(hours=3), start + timedelta(hours=4), False),
    ]


def test_key_layout():
    assert CacheKeyBuilder.day_key("dr-smith", MONDAY) == "avail:resolved:dr-smith:2025-06-16"
    assert CacheKeyBuilder.provider_pattern("dr-smith") == "avail:resolved:dr-smith:*"


def test_payload_round_trip_keeps_instants_and_zone():
    windows = sample_windows()
    restored = payload_to_windows(MONDAY, json.loads(json.dumps(windows_to_payload(windows))), NEW_YORK)
    assert restored == windows
    assert restored[0].start.tzinfo.zone == "America/New_York"


class TestMemoryBackend:
    def test_miss_then_hit(self, cache):
        generation = cache.current_generation("dr-smith")
        assert cache.get_day("dr-smith", MONDAY, generation) is None
        cache.set_day("dr-smith", MONDAY, generation, [{"start": "x"}])
        assert cache.get_day("dr-smith", MONDAY, generation) == [{"start": "x"}]
        assert cache.backend == "memory"

    def test_invalidation_removes_only_that_provider(self, cache):
        cache.set_day("dr-smith", MONDAY, 0, [])
        cache.set_day("dr-smithson", MONDAY, 0, [])
        assert cache.invalidate_provider("dr-smith") == 1
        assert cache.get_day("dr-smith", MONDAY, cache.current_generation("dr-smith")) is None
        assert cache.get_day("dr-smithson", MONDAY, 0) == []

    def test_entry_written_under_old_generation_is_ignored(self, cache):
        generation = cache.current_generation("dr-smith")
        cache.invalidate_provider("dr-smith")
        # A reader that started before the write stores late
        cache.set_day("dr-smith", MONDAY, generation, [{"stale": True}])
        assert cache.get_day("dr-smith", MONDAY, cache.current_generation("dr-smith")) is None

    def test_memory_store_is_shared_between_instances(self, cache):
        cache.set_day("dr-smith", MONDAY, 0, [])
        assert ResolvedWindowCache().get_day("dr-smith", MONDAY, 0) == []

    def test_expired_entry_is_a_miss(self, monkeypatch):
        short = ResolvedWindowCache(ttl_seconds=1)
        short.set_day("dr-smith", MONDAY, 0, [])
        real_monotonic = cache_module.time.monotonic
        monkeypatch.setattr(cache_module.time, "monotonic", lambda: real_monotonic() + 5)
        assert short.get_day("dr-smith", MONDAY, 0) is None


class TestRedisBackend:
    @pytest.fixture
    def fake_redis(self):
        return FakeRedis()

    def test_set_get_and_invalidate(self, fake_redis):
        cache = ResolvedWindowCache(redis_client=fake_redis, ttl_seconds=120)
        assert cache.backend == "redis"
        generation = cache.current_generation("dr-smith")
        assert generation == 0
        cache.set_day("dr-smith", MONDAY, generation, [{"start": "a"}])
        assert fake_redis.expire_times["avail:resolved:dr-smith:2025-06-16"] == 120
        assert cache.get_day("dr-smith", MONDAY, generation) == [{"start": "a"}]

        assert cache.invalidate_provider("dr-smith") == 1
        assert cache.current_generation("dr-smith") == 1
        assert cache.get_day("dr-smith", MONDAY, 1) is None

    def test_redis_errors_degrade_to_misses(self, fake_redis):
        cache = ResolvedWindowCache(redis_client=fake_redis)
        fake_redis.fail = True
        generation = cache.current_generation("dr-smith")
        assert generation == -1
        cache.set_day("dr-smith", MONDAY, generation, [])
        assert cache.get_day("dr-smith", MONDAY, generation) is None
        assert cache.invalidate_provider("dr-smith") == 0

    def test_read_and_write_errors_are_misses(self, fake_redis):
        cache = ResolvedWindowCache(redis_client=fake_redis)
        fake_redis.failing_ops = {"setex"}
        cache.set_day("dr-smith", MONDAY, 0, [{"start": "a"}])
        assert "avail:resolved:dr-smith:2025-06-16" not in fake_redis.store

        fake_redis.failing_ops = set()
        cache.set_day("dr-smith", MONDAY, 0, [{"start": "a"}])
        fake_redis.failing_ops = {"get"}
        assert cache.current_generation("dr-smith") == -1
        assert cache.get_day("dr-smith", MONDAY, 0) is None

    @pytest.mark.parametrize("failing_op", ["incr", "scan_iter"])
    def test_failed_invalidation_bypasses_cache_until_retried(self, fake_redis, failing_op):
        cache = ResolvedWindowCache(redis_client=fake_redis)
        cache.set_day("dr-smith", MONDAY, 0, [{"stale": True}])

        fake_redis.failing_ops = {failing_op}
        cache.invalidate_provider("dr-smith")
        # Reads may still work, but the provider must not be served from cache
        assert cache.current_generation("dr-smith") == -1

        fake_redis.failing_ops = set()
        generation = cache.current_generation("dr-smith")
        assert generation >= 1
        assert cache.get_day("dr-smith", MONDAY, generation) is None
        assert "avail:resolved:dr-smith:2025-06-16" not in fake_redis.store
        # Recovered providers are cached again
        cache.set_day("dr-smith", MONDAY, generation, [])
        assert cache.get_day("dr-smith", MONDAY, cache.current_generation("dr-smith")) == []

    def test_pending_invalidation_does_not_touch_other_providers(self, fake_redis):
        cache = ResolvedWindowCache(redis_client=fake_redis)
        fake_redis.failing_ops = {"incr"}
        cache.invalidate_provider("dr-smith")
        fake_redis.failing_ops = set()
        cache.set_day("dr-jones", MONDAY, 0, [])
        assert cache.get_day("dr-jones", MONDAY, cache.current_generation("dr-jones")) == []

    def test_committed_write_is_visible_after_redis_recovers(self, fake_redis, unit_db):
        engine = AvailabilityEngine(unit_db, cache=ResolvedWindowCache(redis_client=fake_redis))
        engine.set_base_week("p1", {"MONDAY": [{"start_time": "09:00", "end_time": "17:00"}]})
        assert len(engine.get_final_availability("p1", MONDAY)) == 1

        fake_redis.failing_ops = {"incr", "setex", "delete", "scan_iter"}
        engine.add_occupancy("p1", MONDAY, "12:00", "13:00", "bk-1")
        assert len(engine.get_final_availability("p1", MONDAY)) == 2

        fake_redis.failing_ops = set()
        assert len(engine.get_final_availability("p1", MONDAY)) == 2


class TestUnreachableRedis:
    class _DeadClient:
        def ping(self):
            raise RedisConnectionError("connection refused")

    def test_configured_but_unreachable_redis_disables_caching(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_url", "redis://cache.invalid:6379/0")
        monkeypatch.setattr(cache_module.redis, "from_url", lambda *a, **kw: self._DeadClient())
        cache = ResolvedWindowCache()
        assert cache.backend == "disabled"
        assert cache.current_generation("dr-smith") == -1
        cache.set_day("dr-smith", MONDAY, 0, [])
        assert cache.get_day("dr-smith", MONDAY, 0) is None
        assert cache.invalidate_provider("dr-smith") == 0
        # Nothing leaked into the shared in-memory store
        assert ResolvedWindowCache._memory_cache == {}


def test_explicit_zero_ttl_is_kept():
    assert ResolvedWindowCache(ttl_seconds=0).ttl_seconds == 0
    assert ResolvedWindowCache().ttl_seconds == settings.availability_cache_ttl_seconds
