"""
Per-provider write serialization.

All mutations of a provider's base schedule, overrides and occupancy run
inside ``provider_write_lock``. Within one process a registry of
``threading.Lock`` objects is enough; when ``settings.redis_url`` is set the
lock is additionally taken in redis so several processes serialize too.
Acquisition is bounded by ``provider_lock_timeout_seconds`` and fails with
ProviderBusyException instead of queueing indefinitely.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Any, Dict, Iterator, List, Optional
import uuid

from redis import Redis
from redis.exceptions import RedisError

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .constants import PROVIDER_LOCK_NAMESPACE
from .exceptions import ProviderBusyException

logger = logging.getLogger(__name__)

# provider_id -> [lock, number of holders and waiters]; entries go away with their last user
_LOCAL_LOCKS: Dict[str, List[Any]] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_REDIS_POLL_INTERVAL_S = 0.05


def _lock_key(provider_id: str) -> str:
    return f"{PROVIDER_LOCK_NAMESPACE}:{provider_id}"


def _checkout_local_lock(provider_id: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.get(provider_id)
        if entry is None:
            entry = _LOCAL_LOCKS[provider_id] = [threading.Lock(), 0]
        entry[1] += 1
        return entry[0]


def _return_local_lock(provider_id: str) -> None:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS[provider_id]
        entry[1] -= 1
        if entry[1] == 0:
            del _LOCAL_LOCKS[provider_id]


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    if not settings.redis_url:
        return None
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
            )
            client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("provider_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def set_redis_client(client: Optional[Redis]) -> None:
    """Install (or clear) the redis client used for distributed locks."""
    global _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        _SYNC_REDIS = client


def _acquire_redis(client: Redis, provider_id: str, token: str, deadline: float, ttl_s: int) -> bool:
    key = _lock_key(provider_id)
    while True:
        if client.set(key, token, nx=True, ex=ttl_s):
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(_REDIS_POLL_INTERVAL_S)


def _release_redis(client: Redis, provider_id: str, token: str) -> None:
    key = _lock_key(provider_id)
    try:
        if client.get(key) == token:
            client.delete(key)
            prometheus_metrics.record_provider_lock("release", "success")
        else:
            prometheus_metrics.record_provider_lock("release", "expired")
    except RedisError as exc:
        prometheus_metrics.record_provider_lock("release", "error")
        logger.warning(
            "provider_lock_redis_release_failed",
            extra={"provider_id": provider_id, "error": str(exc)},
        )


@contextmanager
def provider_write_lock(
    provider_id: str,
    timeout_s: Optional[float] = None,
    ttl_s: Optional[int] = None,
) -> Iterator[None]:
    """
    Serialize writes for one provider.

    Raises:
        ProviderBusyException: If the lock is not acquired within the timeout
    """
    timeout = settings.provider_lock_timeout_seconds if timeout_s is None else timeout_s
    ttl = settings.provider_lock_ttl_seconds if ttl_s is None else ttl_s
    deadline = time.monotonic() + timeout

    local = _checkout_local_lock(provider_id)
    if not local.acquire(timeout=timeout):
        _return_local_lock(provider_id)
        prometheus_metrics.record_provider_lock("acquire", "timeout")
        logger.warning("provider_lock_timeout", extra={"provider_id": provider_id})
        raise ProviderBusyException(provider_id, timeout)

    client = _get_sync_redis()
    token = uuid.uuid4().hex
    redis_held = False
    try:
        if client is not None:
            try:
                redis_held = _acquire_redis(client, provider_id, token, deadline, ttl)
            except RedisError as exc:
                # Local lock still serializes this process
                prometheus_metrics.record_provider_lock("acquire", "redis_error")
                logger.warning(
                    "provider_lock_redis_acquire_failed",
                    extra={"provider_id": provider_id, "error": str(exc)},
                )
            else:
                if not redis_held:
                    prometheus_metrics.record_provider_lock("acquire", "timeout")
                    raise ProviderBusyException(provider_id, timeout)
        prometheus_metrics.record_provider_lock("acquire", "success")
        yield
    finally:
        if redis_held and client is not None:
            _release_redis(client, provider_id, token)
        local.release()
        _return_local_lock(provider_id)
