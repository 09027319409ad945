# tests/conftest.py
import asyncio
import os
from dataclasses import dataclass
from typing import Callable, List, Optional

# Required settings must exist before anything reads them
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")
os.environ["REDIS_URL"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from origo.adapters.llm import BaseLLMAdapter, LLMConfig, LLMProviderType, LLMResponse
from origo.services.agents import (
    COORDINATOR_ROLE,
    OVERVIEW_ROLE,
    STRATEGIC_ROLE,
    TECHNICAL_ROLE,
    AgentCaller,
    ModelClass,
)
from origo.services.coordinator import CoordinatorSynthesizer
from origo.services.dispatcher import IDEA_ROLE, GenerationDispatcher
from origo.services.generation_service import GenerationPipeline
from origo.services.quota_guard import QuotaGuard
from origo.services.quota_store import MemoryQuotaStore
from origo.services.rate_gate import RateClass, RateGate, RateLimit
from origo.utils.cache import MemoryWindowStore

_ROLE_BY_INSTRUCTIONS = {
    role.instructions: role.name
    for role in (OVERVIEW_ROLE, TECHNICAL_ROLE, STRATEGIC_ROLE, COORDINATOR_ROLE, IDEA_ROLE)
}


def role_name(system_prompt: Optional[str]) -> str:
    # GENERAL_ROLE shares the overview persona
    return _ROLE_BY_INSTRUCTIONS.get(system_prompt, "unknown")


@dataclass
class FakeCall:
    prompt: str
    config: LLMConfig
    system_prompt: Optional[str]

    @property
    def role(self) -> str:
        return role_name(self.system_prompt)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAdapter(BaseLLMAdapter):
    """Records calls and answers from a reply function"""

    def __init__(self, reply: Optional[Callable] = None, delay: float = 0.01):
        super().__init__(api_key="test-key")
        self.calls: List[FakeCall] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.delay = delay
        self.reply = reply or (lambda call: f"## {call.role.title()}\n{call.role} body\n")

    @property
    def provider(self) -> LLMProviderType:
        return LLMProviderType.ANTHROPIC

    def estimate_cost(self, input_tokens, output_tokens, model=None) -> float:
        return 0.0

    def roles_called(self) -> List[str]:
        return [call.role for call in self.calls]

    async def execute(self, prompt, config=None, system_prompt=None) -> LLMResponse:
        call = FakeCall(prompt=prompt, config=config, system_prompt=system_prompt)
        self.calls.append(call)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            content = self.reply(call)
        finally:
            self.in_flight -= 1
        return LLMResponse(
            content=content,
            raw_response={},
            provider=self.provider,
            model=config.model,
        )


MODELS = {ModelClass.FAST: "fast-model", ModelClass.STRONG: "strong-model"}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def adapter():
    return FakeAdapter()


@pytest.fixture
def caller(adapter):
    return AgentCaller(adapter, models=MODELS, timeout=5, temperature=0.0)


@pytest.fixture
def dispatcher(caller):
    return GenerationDispatcher(caller, CoordinatorSynthesizer(caller))


@pytest.fixture
def quota_store():
    return MemoryQuotaStore()


@pytest.fixture
def rate_gate(clock):
    return RateGate(
        shared=None,
        local=MemoryWindowStore(clock=clock),
        limits={
            RateClass.GENERATE: RateLimit(5, 60),
            RateClass.ACTIVATE: RateLimit(5, 15 * 60),
            RateClass.CHECKOUT: RateLimit(10, 60),
        },
        clock=clock,
    )


@pytest.fixture
def pipeline(rate_gate, quota_store, dispatcher):
    return GenerationPipeline(
        rate_gate=rate_gate,
        quota=QuotaGuard(quota_store),
        dispatcher=dispatcher,
    )

