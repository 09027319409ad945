"""
Redis connection and counter-window stores used by the rate gate
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from origo.config import get_settings

# Connection pool
_pool: Optional[ConnectionPool] = None


def get_redis_pool() -> Optional[ConnectionPool]:
    """Get or create Redis connection pool (None when no shared store is configured)"""
    global _pool
    settings = get_settings()
    if not settings.REDIS_URL:
        return None
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=20,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    return _pool


def get_redis() -> Optional[redis.Redis]:
    """Get Redis client"""
    pool = get_redis_pool()
    if pool is None:
        return None
    return redis.Redis(connection_pool=pool)


async def close_redis():
    """Close Redis connections"""
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


@dataclass
class WindowHit:
    """Outcome of one hit against a counter window"""
    allowed: bool
    count: int
    reset_at_ms: int


class WindowStore(ABC):
    """Per-key fixed-length counter windows"""

    @abstractmethod
    async def hit(self, key: str, max_hits: int, window_ms: int) -> WindowHit:
        """
        Count one hit against key.

        The first hit on an absent or expired key opens a new window of
        window_ms. Later hits increment the counter until max_hits is
        reached; from then on hits are rejected without incrementing.
        """
        pass


# Lua runs inside Redis, so the read-check-increment below is atomic
# across every service instance sharing the store.
_HIT_SCRIPT = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
local max_hits = tonumber(ARGV[1])
local window_ms = tonumber(ARGV[2])
if current == 0 then
    redis.call('SET', KEYS[1], 1, 'PX', window_ms)
    return {1, 1, window_ms}
end
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
    redis.call('PEXPIRE', KEYS[1], window_ms)
    ttl = window_ms
end
if current >= max_hits then
    return {0, current, ttl}
end
local count = redis.call('INCR', KEYS[1])
return {1, count, ttl}
"""


class RedisWindowStore(WindowStore):
    """Counter windows shared by all instances through Redis"""

    def __init__(self, client: redis.Redis, prefix: str = "origo:ratelimit"):
        self.client = client
        self.prefix = prefix
        self._script = client.register_script(_HIT_SCRIPT)

    def _key(self, key: str) -> str:
        """Generate full key with prefix"""
        return f"{self.prefix}:{key}"

    async def hit(self, key: str, max_hits: int, window_ms: int) -> WindowHit:
        allowed, count, ttl_ms = await self._script(
            keys=[self._key(key)], args=[max_hits, window_ms]
        )
        now_ms = int(time.time() * 1000)
        return WindowHit(
            allowed=bool(int(allowed)),
            count=int(count),
            reset_at_ms=now_ms + int(ttl_ms),
        )


@dataclass
class _MemEntry:
    count: int
    reset_at_ms: int


class MemoryWindowStore(WindowStore):
    """
    In-process counter windows.

    Scoped to the current process only: limits are enforced per instance,
    so this store does not scale horizontally. Used as the rate gate's
    fallback when the shared store is unreachable.
    """

    def __init__(
        self,
        purge_interval_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        self._entries: Dict[str, _MemEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._purge_interval_ms = purge_interval_seconds * 1000
        self._last_purge_ms = self._now_ms()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def __len__(self) -> int:
        return len(self._entries)

    def purge_expired(self) -> int:
        """Drop expired windows; returns how many were removed"""
        now_ms = self._now_ms()
        with self._lock:
            stale = [k for k, v in self._entries.items() if now_ms > v.reset_at_ms]
            for k in stale:
                del self._entries[k]
            self._last_purge_ms = now_ms
        return len(stale)

    async def hit(self, key: str, max_hits: int, window_ms: int) -> WindowHit:
        now_ms = self._now_ms()
        if now_ms - self._last_purge_ms >= self._purge_interval_ms:
            self.purge_expired()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now_ms > entry.reset_at_ms:
                entry = _MemEntry(count=1, reset_at_ms=now_ms + window_ms)
                self._entries[key] = entry
                return WindowHit(allowed=True, count=1, reset_at_ms=entry.reset_at_ms)
            if entry.count >= max_hits:
                return WindowHit(allowed=False, count=entry.count, reset_at_ms=entry.reset_at_ms)
            entry.count += 1
            return WindowHit(allowed=True, count=entry.count, reset_at_ms=entry.reset_at_ms)
