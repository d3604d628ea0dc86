"""
Per-creator booking lock.

Serializes check-then-write sequences (book, confirm) for a single creator.
A process-local ``threading.Lock`` always applies; when a Redis URL is
configured a ``SET NX EX`` key is also taken so separate workers serialize
as well. Redis being unreachable degrades to the local lock only.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Iterator, Optional
import weakref

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import ConflictException

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()


class _CreatorLock:
    """Process-local lock for one creator, weak-referenceable."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self, timeout: float = -1) -> bool:
        return self._lock.acquire(timeout=timeout)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()


# Entries disappear once no holder or waiter references them.
_LOCAL_LOCKS: "weakref.WeakValueDictionary[str, _CreatorLock]" = weakref.WeakValueDictionary()
_LOCAL_LOCKS_GUARD = threading.Lock()

_RETRY_INTERVAL_S = 0.05


def _lock_key(creator_id: str) -> str:
    return f"creator:{creator_id}:booking"


def _namespaced_key(key: str) -> str:
    return f"{settings.session_lock_namespace}:lock:{key}"


def _local_lock(creator_id: str) -> _CreatorLock:
    with _LOCAL_LOCKS_GUARD:
        lock = _LOCAL_LOCKS.get(creator_id)
        if lock is None:
            lock = _CreatorLock()
            _LOCAL_LOCKS[creator_id] = lock
        return lock


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.session_lock_redis_url:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.session_lock_redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("session_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def reset_session_lock_state() -> None:
    """Drop the cached Redis client and local lock table (used by tests)."""
    global _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        _SYNC_REDIS = None
    with _LOCAL_LOCKS_GUARD:
        _LOCAL_LOCKS.clear()


def _lock_busy(creator_id: str) -> ConflictException:
    return ConflictException(
        message="Another booking for this creator is in progress, please retry",
        code="SESSION_LOCK_BUSY",
        details={"creator_id": creator_id},
    )


def _acquire_redis(client: Redis, creator_id: str, ttl_s: int, timeout_s: float) -> bool:
    """
    Try to take the distributed lock until ``timeout_s`` elapses.

    Returns True when held, False when another holder kept it. Redis
    errors propagate to the caller.
    """
    key = _namespaced_key(_lock_key(creator_id))
    deadline = time.monotonic() + timeout_s
    while True:
        if client.set(key, str(time.time()), nx=True, ex=ttl_s):
            prometheus_metrics.record_session_lock("acquire", "success")
            return True
        if time.monotonic() >= deadline:
            prometheus_metrics.record_session_lock("acquire", "blocked")
            return False
        time.sleep(_RETRY_INTERVAL_S)


def _release_redis(client: Redis, creator_id: str) -> None:
    try:
        deleted = client.delete(_namespaced_key(_lock_key(creator_id)))
        if deleted:
            prometheus_metrics.record_session_lock("release", "success")
        else:
            prometheus_metrics.record_session_lock("release", "not_found")
    except Exception as exc:
        prometheus_metrics.record_session_lock("release", "error")
        logger.warning(
            "session_lock_release_failed",
            extra={
                "creator_id": creator_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def creator_booking_lock(
    creator_id: str,
    ttl_s: Optional[int] = None,
    timeout_s: Optional[float] = None,
) -> Iterator[None]:
    """
    Hold the booking lock for ``creator_id`` for the duration of the block.

    Raises:
        ConflictException: (SESSION_LOCK_BUSY) if the lock is not obtained in time
    """
    ttl = int(ttl_s or settings.session_lock_ttl_seconds)
    timeout = float(
        timeout_s if timeout_s is not None else settings.session_lock_acquire_timeout_seconds
    )

    local = _local_lock(creator_id)
    if not local.acquire(timeout=timeout):
        prometheus_metrics.record_session_lock("acquire", "local_timeout")
        logger.warning("session_lock_local_timeout", extra={"creator_id": creator_id})
        raise _lock_busy(creator_id)

    client: Optional[Redis] = None
    try:
        candidate = _get_sync_redis()
        if candidate is None:
            if settings.session_lock_redis_url:
                prometheus_metrics.record_session_lock("acquire", "redis_unavailable")
        else:
            try:
                held = _acquire_redis(candidate, creator_id, ttl, timeout)
            except Exception as exc:
                prometheus_metrics.record_session_lock("acquire", "error")
                logger.warning(
                    "session_lock_acquire_failed",
                    extra={
                        "creator_id": creator_id,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
            else:
                if not held:
                    raise _lock_busy(creator_id)
                client = candidate

        yield
    finally:
        if client is not None:
            _release_redis(client, creator_id)
        local.release()
