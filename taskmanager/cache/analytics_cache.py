"""Analytics snapshot cache.

Snapshots are stored per (user, period) under `analytics:{user_id}:{period}`
with a TTL. Two backends share the `AnalyticsCache` protocol:
- Redis (production), selected by `REDIS_URL`
- an in-process dict (local dev when `REDIS_URL` is unset)

Backend failures surface as `CacheError` so callers can fall back to
computing from the task store.
"""

import logging
import os
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis
from dotenv import load_dotenv
from pydantic import ValidationError

from taskmanager.models.analytics import AnalyticsPeriod, AnalyticsSnapshot, CachedAnalytics

load_dotenv()

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "")
ANALYTICS_CACHE_TTL = timedelta(hours=float(os.getenv("ANALYTICS_CACHE_TTL_HOURS", "6")))

ANALYTICS_KEY_FORMAT = "analytics:{user_id}:{period}"


class CacheError(Exception):
    """Raised when the cache backend cannot be read or written."""


def analytics_cache_key(user_id: str, period) -> str:
    """Build the cache key for a (user, period) pair."""
    period_value = period if period == "*" else AnalyticsPeriod(period).value
    return ANALYTICS_KEY_FORMAT.format(user_id=user_id, period=period_value)


class AnalyticsCache(Protocol):
    """Capability set of an analytics cache backend."""

    def get(self, user_id: str, period) -> Optional[AnalyticsSnapshot]:
        """Return the cached snapshot, or None on a miss."""
        ...

    def set(self, snapshot: AnalyticsSnapshot, ttl: timedelta = ANALYTICS_CACHE_TTL) -> None:
        """Store (or overwrite) the snapshot for its (user, period)."""
        ...

    def invalidate(self, user_id: str) -> None:
        """Remove every cached period for the user."""
        ...


class RedisAnalyticsCache:
    """Redis-backed analytics cache."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def get(self, user_id: str, period) -> Optional[AnalyticsSnapshot]:
        key = analytics_cache_key(user_id, period)
        try:
            data = self.client.get(key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to get analytics from cache: {e}") from e
        if data is None:
            return None

        try:
            return CachedAnalytics.model_validate_json(data).analytics
        except ValidationError as e:
            raise CacheError(f"Failed to decode cached analytics for {key}") from e

    def set(self, snapshot: AnalyticsSnapshot, ttl: timedelta = ANALYTICS_CACHE_TTL) -> None:
        key = analytics_cache_key(snapshot.user_id, snapshot.period)
        payload = CachedAnalytics(
            user_id=snapshot.user_id,
            period=snapshot.period,
            analytics=snapshot,
        ).model_dump_json()
        try:
            self.client.set(key, payload, ex=max(1, int(ttl.total_seconds())))
        except redis.RedisError as e:
            raise CacheError(f"Failed to set analytics in cache: {e}") from e

    def invalidate(self, user_id: str) -> None:
        pattern = analytics_cache_key(user_id, "*")
        try:
            for key in self.client.scan_iter(match=pattern):
                self.client.delete(key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to invalidate analytics for user {user_id}: {e}") from e


class InMemoryAnalyticsCache:
    """Process-local analytics cache with TTL expiry.

    Entries are only visible to the process that wrote them.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str, period) -> Optional[AnalyticsSnapshot]:
        key = analytics_cache_key(user_id, period)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
        return CachedAnalytics.model_validate_json(payload).analytics

    def set(self, snapshot: AnalyticsSnapshot, ttl: timedelta = ANALYTICS_CACHE_TTL) -> None:
        key = analytics_cache_key(snapshot.user_id, snapshot.period)
        payload = CachedAnalytics(
            user_id=snapshot.user_id,
            period=snapshot.period,
            analytics=snapshot,
        ).model_dump_json()
        with self._lock:
            self._entries[key] = (self._clock() + ttl.total_seconds(), payload)

    def invalidate(self, user_id: str) -> None:
        prefix = analytics_cache_key(user_id, "*")[:-1]
        with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]


def build_analytics_cache(redis_url: Optional[str] = None) -> AnalyticsCache:
    """Create the analytics cache configured by `REDIS_URL`."""
    url = REDIS_URL if redis_url is None else redis_url
    if not url:
        logger.info("REDIS_URL not set; using in-process analytics cache")
        return InMemoryAnalyticsCache()

    logger.info("Using Redis analytics cache")
    return RedisAnalyticsCache(redis.Redis.from_url(url))
