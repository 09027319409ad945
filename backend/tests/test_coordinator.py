import pytest

from origo.services.agents import OVERVIEW_ROLE, STRATEGIC_ROLE, TECHNICAL_ROLE, Draft
from origo.services.coordinator import CoordinatorSynthesizer, build_coordinator_prompt


def test_prompt_lists_request_then_labeled_drafts():
    drafts = [
        Draft(role=OVERVIEW_ROLE, text="## A\na"),
        Draft(role=TECHNICAL_ROLE, text="## B\nb"),
        Draft(role=STRATEGIC_ROLE, text="## C\nc"),
    ]

    prompt = build_coordinator_prompt("Build a CRM", drafts)

    assert prompt == (
        "PROJECT REQUEST:\nBuild a CRM\n\n"
        "---\nDRAFT 1 (Project Manager perspective):\n## A\na\n\n"
        "---\nDRAFT 2 (Technical Lead perspective):\n## B\nb\n\n"
        "---\nDRAFT 3 (Strategic Analyst perspective):\n## C\nc\n"
    )


@pytest.mark.asyncio
async def test_synthesis_is_a_single_coordinator_call(adapter, caller):
    adapter.reply = lambda call: "  ## Final\nunified  \n"
    drafts = [Draft(role=OVERVIEW_ROLE, text="x"), Draft(role=TECHNICAL_ROLE, text="y")]

    result = await CoordinatorSynthesizer(caller).synthesize("Build a CRM", drafts)

    assert adapter.roles_called() == ["coordinator"]
    assert result == "## Final\nunified"
