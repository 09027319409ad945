"""
Business Logic Services
"""

from typing import Optional

from origo.adapters.llm import BaseLLMAdapter, get_adapter
from origo.config import Settings, get_settings
from origo.utils.cache import MemoryWindowStore, RedisWindowStore, get_redis

from .agents import AgentCaller
from .coordinator import CoordinatorSynthesizer
from .dispatcher import GenerationDispatcher, GenerationRequest
from .generation_service import GenerationPipeline, GenerationResult
from .quota_guard import QuotaGuard
from .quota_store import QuotaStore, SqlQuotaStore
from .rate_gate import RateGate, default_rate_limits


def build_pipeline(
    settings: Optional[Settings] = None,
    adapter: Optional[BaseLLMAdapter] = None,
    quota_store: Optional[QuotaStore] = None,
) -> GenerationPipeline:
    """Wire the production pipeline from settings"""
    settings = settings or get_settings()

    client = get_redis()
    rate_gate = RateGate(
        shared=RedisWindowStore(client) if client is not None else None,
        local=MemoryWindowStore(purge_interval_seconds=settings.RATE_LIMIT_PURGE_INTERVAL),
        limits=default_rate_limits(settings),
    )

    caller = AgentCaller(adapter or get_adapter("anthropic"))
    dispatcher = GenerationDispatcher(caller, CoordinatorSynthesizer(caller))

    return GenerationPipeline(
        rate_gate=rate_gate,
        quota=QuotaGuard(quota_store or SqlQuotaStore()),
        dispatcher=dispatcher,
    )


__all__ = [
    "build_pipeline",
    "AgentCaller",
    "CoordinatorSynthesizer",
    "GenerationDispatcher",
    "GenerationRequest",
    "GenerationPipeline",
    "GenerationResult",
    "QuotaGuard",
    "RateGate",
]
