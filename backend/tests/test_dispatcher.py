import pytest

from conftest import MODELS, FakeAdapter
from origo.adapters.llm import LLMTimeoutError
from origo.config import PlanName, PlanTier
from origo.errors import UpstreamGenerationError
from origo.services.agents import AgentCaller
from origo.services.dispatcher import (
    IDEA_FOCUS_INSTRUCTIONS,
    DocumentType,
    GenerationDispatcher,
    GenerationRequest,
    IdeaFocus,
)


def _dispatcher(adapter: FakeAdapter) -> GenerationDispatcher:
    return GenerationDispatcher(AgentCaller(adapter, models=MODELS, timeout=5))


@pytest.mark.parametrize(
    "plan, tier",
    [
        (PlanName.FREE, PlanTier.SINGLE),
        (PlanName.STARTER, PlanTier.SINGLE),
        (PlanName.PRO, PlanTier.MERGED),
        (PlanName.PREMIUM, PlanTier.COORDINATED),
        (PlanName.ENTERPRISE, PlanTier.COORDINATED),
    ],
)
def test_plan_tiers(plan, tier):
    assert GenerationRequest(prompt="x", plan=plan).tier is tier


@pytest.mark.asyncio
async def test_single_tier_returns_one_draft_unchanged(adapter, dispatcher):
    content = await dispatcher.generate(GenerationRequest(prompt="A bakery app", plan=PlanName.FREE))

    assert len(adapter.calls) == 1
    assert adapter.calls[0].config.max_tokens == 4096
    assert adapter.calls[0].prompt == "A bakery app"
    assert content == "## Overview\noverview body"


@pytest.mark.asyncio
async def test_merged_tier_runs_two_agents_concurrently(adapter, dispatcher):
    content = await dispatcher.generate(GenerationRequest(prompt="A bakery app", plan=PlanName.PRO))

    assert sorted(adapter.roles_called()) == ["overview", "technical"]
    assert adapter.peak_in_flight == 2
    assert content == "## Overview\noverview body\n\n## Technical\ntechnical body"


@pytest.mark.asyncio
async def test_merged_tier_drops_sections_the_overview_already_has():
    def reply(call):
        if call.role == "overview":
            return "## Scope\nmine\n## Goals\ng"
        return "## scope\ntheirs\n## Risks\nr"

    adapter = FakeAdapter(reply=reply)
    content = await _dispatcher(adapter).generate(
        GenerationRequest(prompt="x", plan=PlanName.PRO)
    )

    assert content == "## Scope\nmine\n## Goals\ng\n\n## Risks\nr"


@pytest.mark.asyncio
async def test_coordinated_tier_synthesizes_three_drafts(adapter, dispatcher):
    content = await dispatcher.generate(GenerationRequest(prompt="A bakery app", plan=PlanName.PREMIUM))

    roles = adapter.roles_called()
    assert sorted(roles[:3]) == ["overview", "strategic", "technical"]
    assert roles[3] == "coordinator"
    assert adapter.peak_in_flight == 3

    coordinator = adapter.calls[3]
    assert coordinator.config.model == "strong-model"
    assert coordinator.prompt.startswith("PROJECT REQUEST:\nA bakery app")
    assert "DRAFT 1 (Project Manager perspective):\n## Overview" in coordinator.prompt
    assert "DRAFT 2 (Technical Lead perspective):\n## Technical" in coordinator.prompt
    assert "DRAFT 3 (Strategic Analyst perspective):\n## Strategic" in coordinator.prompt
    assert content == "## Coordinator\ncoordinator body"


@pytest.mark.asyncio
async def test_one_failed_agent_fails_the_batch_before_synthesis():
    def reply(call):
        if call.role == "technical":
            raise LLMTimeoutError("Request timed out after 5s", None)
        return f"## {call.role}\nok"

    adapter = FakeAdapter(reply=reply)
    with pytest.raises(UpstreamGenerationError) as exc_info:
        await _dispatcher(adapter).generate(
            GenerationRequest(prompt="x", plan=PlanName.ENTERPRISE)
        )

    assert exc_info.value.role == "technical"
    assert "coordinator" not in adapter.roles_called()
    assert adapter.in_flight == 0


@pytest.mark.asyncio
async def test_failed_merge_tier_produces_no_partial_document():
    def reply(call):
        if call.role == "overview":
            return ""
        return "## Technical\nok"

    adapter = FakeAdapter(reply=reply)
    with pytest.raises(UpstreamGenerationError) as exc_info:
        await _dispatcher(adapter).generate(GenerationRequest(prompt="x", plan=PlanName.PRO))
    assert exc_info.value.role == "overview"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "plan, model, max_tokens",
    [
        (PlanName.FREE, "fast-model", 4096),
        (PlanName.PRO, "fast-model", 4096),
        (PlanName.PREMIUM, "strong-model", 6000),
    ],
)
async def test_idea_mode_is_one_call_scaled_by_tier(adapter, dispatcher, plan, model, max_tokens):
    request = GenerationRequest(
        prompt="Marketplace for local artisans",
        plan=plan,
        document_type=DocumentType.IDEA,
        focus=IdeaFocus.MVP,
    )
    await dispatcher.generate(request)

    assert adapter.roles_called() == ["idea"]
    call = adapter.calls[0]
    assert (call.config.model, call.config.max_tokens) == (model, max_tokens)
    assert "Marketplace for local artisans" in call.prompt
    assert IDEA_FOCUS_INSTRUCTIONS[IdeaFocus.MVP] in call.prompt
    assert "## 5. CONDENSED BRIEF" in call.system_prompt
