# backend/availability_engine/services/cache_service.py
"""
Resolved-window cache.

Entries are keyed by ``(provider_id, date)`` and hold that day's resolved
windows (free and busy). Every write to a provider's stores invalidates all
of its entries synchronously after commit; the TTL only bounds memory use.

Invalidation bumps a per-provider generation counter before deleting keys.
Readers capture the generation before loading store snapshots and entries
written under an older generation are ignored, so a read racing a write can
never re-populate the cache with pre-write windows.

Redis is used when ``settings.redis_url`` is set and reachable. Without a
configured url a process-wide in-memory store is shared by all cache
instances. A configured but unreachable Redis disables caching instead, since
a per-process store could not be invalidated by writers in other processes.

A Redis invalidation that fails leaves the provider marked pending in this
process: its reads bypass the cache and retry the invalidation until it
succeeds.
"""

from datetime import date, datetime
import json
import logging
import threading
import time
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from pytz.tzinfo import BaseTzInfo
import redis
from redis import Redis
from redis.exceptions import RedisError

from ..core.config import settings
from ..core.constants import RESOLVED_CACHE_NAMESPACE
from ..monitoring.prometheus_metrics import prometheus_metrics
from .availability_resolver import ResolvedWindow

logger = logging.getLogger(__name__)

GENERATION_NAMESPACE = "avail:generation"


class CacheKeyBuilder:
    """Standardized cache key generation."""

    @staticmethod
    def build(*parts: Union[str, int, date]) -> str:
        """
        Build a cache key from parts.

        Examples:
            build('avail:resolved', 'dr-1', date(2025, 6, 16)) -> 'avail:resolved:dr-1:2025-06-16'
        """
        return ":".join(part.isoformat() if isinstance(part, date) else str(part) for part in parts)

    @classmethod
    def day_key(cls, provider_id: str, day: date) -> str:
        return cls.build(RESOLVED_CACHE_NAMESPACE, provider_id, day)

    @classmethod
    def provider_pattern(cls, provider_id: str) -> str:
        return cls.build(RESOLVED_CACHE_NAMESPACE, provider_id, "*")

    @classmethod
    def generation_key(cls, provider_id: str) -> str:
        return cls.build(GENERATION_NAMESPACE, provider_id)


def windows_to_payload(windows: List[ResolvedWindow]) -> List[Dict[str, Any]]:
    return [
        {
            "start": w.start.isoformat(),
            "end": w.end.isoformat(),
            "is_available": w.is_available,
        }
        for w in windows
    ]


def payload_to_windows(day: date, payload: List[Dict[str, Any]], tz: BaseTzInfo) -> List[ResolvedWindow]:
    return [
        ResolvedWindow(
            date=day,
            start=datetime.fromisoformat(item["start"]).astimezone(tz),
            end=datetime.fromisoformat(item["end"]).astimezone(tz),
            is_available=bool(item["is_available"]),
        )
        for item in payload
    ]


class ResolvedWindowCache:
    """Per-(provider, date) cache of resolved windows with explicit invalidation."""

    # In-memory fallback shared across instances in this process
    _memory_cache: Dict[str, Tuple[float, Dict[str, Any]]] = {}
    _memory_generation: Dict[str, int] = {}
    _memory_lock = threading.Lock()
    _pending_invalidation: Set[str] = set()

    def __init__(self, redis_client: Optional[Redis] = None, ttl_seconds: Optional[int] = None):
        if ttl_seconds is None:
            ttl_seconds = settings.availability_cache_ttl_seconds
        self.ttl_seconds = ttl_seconds
        self.redis: Optional[Redis] = redis_client
        self.disabled = False
        if self.redis is None and settings.redis_url:
            self._setup_redis_connection()

    def _setup_redis_connection(self) -> None:
        """Connect to the configured Redis; disable caching when it is unreachable."""
        try:
            client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                health_check_interval=30,
            )
            client.ping()
            self.redis = client
            logger.info("Resolved-window cache connected to Redis")
        except (RedisError, OSError) as e:
            logger.warning(f"Redis not available: {e}. Resolved-window cache disabled.")
            self.redis = None
            self.disabled = True

    @property
    def backend(self) -> str:
        if self.disabled:
            return "disabled"
        return "redis" if self.redis is not None else "memory"

    # Generations

    def current_generation(self, provider_id: str) -> int:
        """Generation to tag reads with; -1 means do not use the cache."""
        if self.disabled:
            return -1
        if self.redis is None:
            with self._memory_lock:
                return self._memory_generation.get(provider_id, 0)
        if provider_id in self._pending_invalidation:
            self._invalidate_redis(provider_id)
            if provider_id in self._pending_invalidation:
                return -1
        try:
            value = self.redis.get(CacheKeyBuilder.generation_key(provider_id))
            return int(value or 0)
        except RedisError as e:
            prometheus_metrics.record_cache("error")
            logger.warning(f"Cache generation read failed for {provider_id}: {e}")
            return -1

    # Entries

    def get_day(self, provider_id: str, day: date, generation: int) -> Optional[List[Dict[str, Any]]]:
        """Return the cached window payload for a day, or None on miss or stale entry."""
        if generation < 0 or self.disabled:
            return None
        key = CacheKeyBuilder.day_key(provider_id, day)
        entry = self._read(key)
        if entry is None:
            prometheus_metrics.record_cache("miss")
            return None
        if entry.get("generation") != generation:
            prometheus_metrics.record_cache("stale")
            return None
        prometheus_metrics.record_cache("hit")
        return entry["windows"]

    def set_day(
        self, provider_id: str, day: date, generation: int, windows: List[Dict[str, Any]]
    ) -> None:
        if generation < 0 or self.disabled:
            return
        key = CacheKeyBuilder.day_key(provider_id, day)
        self._write(key, {"generation": generation, "windows": windows})

    def invalidate_provider(self, provider_id: str) -> int:
        """Drop every cached day of a provider. Returns the number of keys removed."""
        if self.disabled:
            return 0
        if self.redis is None:
            removed = self._invalidate_memory(provider_id)
        else:
            removed = self._invalidate_redis(provider_id)
        prometheus_metrics.record_cache("invalidate")
        logger.debug(f"Invalidated {removed} resolved-window entries for provider {provider_id}")
        return removed

    def clear(self) -> None:
        """Forget every in-memory entry and generation (tests, process reset)."""
        with self._memory_lock:
            self._memory_cache.clear()
            self._memory_generation.clear()
            self._pending_invalidation.clear()

    # Backends

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        if self.redis is None:
            with self._memory_lock:
                item = self._memory_cache.get(key)
                if item is None:
                    return None
                expires_at, value = item
                if time.monotonic() >= expires_at:
                    del self._memory_cache[key]
                    return None
                return value
        try:
            raw = self.redis.get(key)
        except RedisError as e:
            prometheus_metrics.record_cache("error")
            logger.warning(f"Cache get error for key {key}: {e}")
            return None
        return json.loads(raw) if raw is not None else None

    def _write(self, key: str, value: Dict[str, Any]) -> None:
        if self.redis is None:
            with self._memory_lock:
                self._memory_cache[key] = (time.monotonic() + self.ttl_seconds, value)
            return
        try:
            self.redis.setex(key, self.ttl_seconds, json.dumps(value))
        except RedisError as e:
            prometheus_metrics.record_cache("error")
            logger.warning(f"Cache set error for key {key}: {e}")

    def _invalidate_memory(self, provider_id: str) -> int:
        prefix = CacheKeyBuilder.build(RESOLVED_CACHE_NAMESPACE, provider_id, "")
        with self._memory_lock:
            self._memory_generation[provider_id] = self._memory_generation.get(provider_id, 0) + 1
            keys = [k for k in self._memory_cache if k.startswith(prefix)]
            for key in keys:
                del self._memory_cache[key]
        return len(keys)

    def _invalidate_redis(self, provider_id: str) -> int:
        assert self.redis is not None
        count = 0
        try:
            self.redis.incr(CacheKeyBuilder.generation_key(provider_id))
            for key in self.redis.scan_iter(match=CacheKeyBuilder.provider_pattern(provider_id)):
                count += int(self.redis.delete(key) or 0)
        except RedisError as e:
            self._pending_invalidation.add(provider_id)
            prometheus_metrics.record_cache("error")
            logger.error(f"Cache invalidation failed for provider {provider_id}: {e}")
            return count
        self._pending_invalidation.discard(provider_id)
        return count
