"""
Rate Gate
Per-identifier admission control over fixed windows, backed by a shared
store with an in-process fallback
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional

from redis.exceptions import RedisError

from origo.config import Settings, get_settings
from origo.utils.cache import MemoryWindowStore, WindowHit, WindowStore

logger = logging.getLogger(__name__)


class RateClass(str, Enum):
    """Action classes with independent limits"""
    GENERATE = "generate"
    ACTIVATE = "activate"
    CHECKOUT = "checkout"


@dataclass(frozen=True)
class RateLimit:
    max_requests: int
    window_seconds: int


@dataclass
class RateDecision:
    """Result of an admission check"""
    allowed: bool
    limit: int
    remaining: int
    reset_at: datetime
    retry_after_seconds: Optional[int] = None

    def headers(self) -> Dict[str, str]:
        """X-RateLimit-* response headers for this decision"""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_at.isoformat(),
        }
        if self.retry_after_seconds:
            headers["Retry-After"] = str(self.retry_after_seconds)
        return headers


def default_rate_limits(settings: Optional[Settings] = None) -> Dict[RateClass, RateLimit]:
    settings = settings or get_settings()
    return {
        RateClass.GENERATE: RateLimit(
            settings.RATE_LIMIT_GENERATE_MAX, settings.RATE_LIMIT_GENERATE_WINDOW
        ),
        RateClass.ACTIVATE: RateLimit(
            settings.RATE_LIMIT_ACTIVATE_MAX, settings.RATE_LIMIT_ACTIVATE_WINDOW
        ),
        RateClass.CHECKOUT: RateLimit(
            settings.RATE_LIMIT_CHECKOUT_MAX, settings.RATE_LIMIT_CHECKOUT_WINDOW
        ),
    }


class RateGate:
    """
    Admission control for identifiers (usually account ids).

    The shared store is tried first. If it fails for any store-level reason
    the failure is logged and the call is answered by the local fallback,
    which only sees traffic hitting this instance. admit() never raises.
    """

    STORE_ERRORS = (RedisError, OSError, TimeoutError)

    def __init__(
        self,
        shared: Optional[WindowStore] = None,
        local: Optional[MemoryWindowStore] = None,
        limits: Optional[Dict[RateClass, RateLimit]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.shared = shared
        self.local = local or MemoryWindowStore(clock=clock)
        self.limits = limits or default_rate_limits()
        self._clock = clock

    async def admit(self, identifier: str, action: RateClass) -> RateDecision:
        """Count one request for identifier under action's limit"""
        limit = self.limits[action]
        key = f"{action.value}:{identifier}"
        window_ms = limit.window_seconds * 1000

        hit: Optional[WindowHit] = None
        if self.shared is not None:
            try:
                hit = await self.shared.hit(key, limit.max_requests, window_ms)
            except self.STORE_ERRORS as e:
                logger.warning(
                    "Shared rate store unavailable, using local limiter for %s: %s", key, e
                )
        if hit is None:
            hit = await self.local.hit(key, limit.max_requests, window_ms)

        return self._decision(hit, limit)

    def _decision(self, hit: WindowHit, limit: RateLimit) -> RateDecision:
        reset_at = datetime.fromtimestamp(hit.reset_at_ms / 1000, tz=timezone.utc)
        if not hit.allowed:
            now_ms = int(self._clock() * 1000)
            retry_after = max(1, math.ceil((hit.reset_at_ms - now_ms) / 1000))
            return RateDecision(
                allowed=False,
                limit=limit.max_requests,
                remaining=0,
                reset_at=reset_at,
                retry_after_seconds=retry_after,
            )
        return RateDecision(
            allowed=True,
            limit=limit.max_requests,
            remaining=max(0, limit.max_requests - hit.count),
            reset_at=reset_at,
        )
