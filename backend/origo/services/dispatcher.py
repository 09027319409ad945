"""
Generation Dispatcher

Plan-based agent dispatch:
- Tier 1 (free / starter): one general agent, returned as-is
- Tier 2 (pro): overview + technical agents in parallel, merged by heading
- Tier 3 (premium / enterprise): three specialists in parallel, then one
  coordinator synthesis on the strong model
- Idea mode: one call producing a fixed five-section package
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from origo.config import PlanName, PlanTier, plan_tier
from origo.errors import UpstreamGenerationError
from origo.services.agents import (
    GENERAL_ROLE,
    OVERVIEW_ROLE,
    STRATEGIC_ROLE,
    TECHNICAL_ROLE,
    AgentCaller,
    AgentRole,
    Draft,
    ModelClass,
)
from origo.services.coordinator import CoordinatorSynthesizer
from origo.services.draft_merger import merge_drafts

logger = logging.getLogger(__name__)


class DocumentType(str, Enum):
    BRIEF = "brief"
    IDEA = "idea"


class IdeaFocus(str, Enum):
    """Idea-mode section to expand in depth"""
    PRESENTATION = "presentation"
    MVP = "mvp"
    POC = "poc"
    ESTIMATE = "estimate"
    BRIEF = "brief"  # balanced depth


class Combine(str, Enum):
    NONE = "none"
    MERGE = "merge"
    SYNTHESIZE = "synthesize"


@dataclass(frozen=True)
class TierStrategy:
    roles: Tuple[AgentRole, ...]
    combine: Combine


STRATEGIES: Dict[PlanTier, TierStrategy] = {
    PlanTier.SINGLE: TierStrategy(roles=(GENERAL_ROLE,), combine=Combine.NONE),
    PlanTier.MERGED: TierStrategy(
        roles=(OVERVIEW_ROLE, TECHNICAL_ROLE), combine=Combine.MERGE
    ),
    PlanTier.COORDINATED: TierStrategy(
        roles=(OVERVIEW_ROLE, TECHNICAL_ROLE, STRATEGIC_ROLE), combine=Combine.SYNTHESIZE
    ),
}


@dataclass(frozen=True)
class GenerationRequest:
    """One inbound generation call, already validated"""
    prompt: str
    plan: PlanName
    document_type: DocumentType = DocumentType.BRIEF
    focus: IdeaFocus = IdeaFocus.BRIEF

    @property
    def tier(self) -> PlanTier:
        return plan_tier(self.plan)


IDEA_ROLE = AgentRole(
    name="idea",
    perspective="Product Strategist",
    instructions="""You are an expert business analyst and product strategist. Transform a rough idea into a complete, investor-ready document package.

Given a project idea, generate EXACTLY these 5 sections with professional depth:

## 1. PROJECT PRESENTATION
- The concept in 1-2 punchy sentences
- Problem solved and market opportunity
- Unique value proposition
- Main target users
- Intended revenue model

## 2. MVP - Minimum Viable Product
- 5-7 core features (each with a short description)
- What is explicitly excluded from V1
- MVP success metrics
- Recommended technical stack

## 3. POC - Proof of Concept
- Technical validation approach
- Key hypotheses to test
- Minimum resources needed (time + budget)
- Estimated duration and expected result

## 4. COST ESTIMATE
- Development phases with timeline (in weeks)
- Recommended team composition
- Budget breakdown (design, development, infrastructure, marketing)
- Estimated total budget range

## 5. CONDENSED BRIEF
- One-paragraph executive summary
- 3 key decisions to make now
- Recommended next steps

Respond in the language of the idea provided. Be concrete, actionable and professional. Use clear markdown headings (## for sections, ### for subsections).""",
    focus="idea package",
    model_class=ModelClass.FAST,
    max_tokens=4096,
)

_KEEP_OTHERS_TERSE = "The other sections remain present but more concise."

IDEA_FOCUS_INSTRUCTIONS: Dict[IdeaFocus, str] = {
    IdeaFocus.PRESENTATION: (
        "Generate the usual 5 sections, with particular emphasis on PROJECT PRESENTATION: "
        "develop it in depth with the project's story, a detailed market opportunity and a "
        "convincing value proposition. " + _KEEP_OTHERS_TERSE
    ),
    IdeaFocus.MVP: (
        "Generate the usual 5 sections, with particular emphasis on the MVP: detail every "
        "feature exhaustively (user stories, acceptance criteria, MoSCoW priority), the "
        "development roadmap and the success metrics. " + _KEEP_OTHERS_TERSE
    ),
    IdeaFocus.POC: (
        "Generate the usual 5 sections, with particular emphasis on the POC: detail the "
        "technical validation plan step by step, the risks to test first, the experiment "
        "protocol and the go/no-go criteria. " + _KEEP_OTHERS_TERSE
    ),
    IdeaFocus.ESTIMATE: (
        "Generate the usual 5 sections, with particular emphasis on the COST ESTIMATE: give a "
        "very detailed budget breakdown by phase and by trade, several scenarios (minimum / "
        "optimal / premium), and a cost/benefit analysis. " + _KEEP_OTHERS_TERSE
    ),
    IdeaFocus.BRIEF: (
        "Generate the 5 sections with balanced depth. This is the standard complete document."
    ),
}


def idea_role_for(tier: PlanTier) -> AgentRole:
    """Idea mode scales the model class with the plan tier"""
    if tier is PlanTier.COORDINATED:
        return replace(IDEA_ROLE, model_class=ModelClass.STRONG, max_tokens=6000)
    return IDEA_ROLE


def build_idea_prompt(idea: str, focus: IdeaFocus) -> str:
    return (
        "Turn this idea into a complete structured document:\n\n"
        f"{idea}\n\n"
        f"{IDEA_FOCUS_INSTRUCTIONS[focus]}\n\n"
        "Generate the 5 requested sections with depth and precision."
    )


class GenerationDispatcher:
    """Selects the tier strategy and runs its agents"""

    def __init__(self, caller: AgentCaller, synthesizer: Optional[CoordinatorSynthesizer] = None):
        self.caller = caller
        self.synthesizer = synthesizer or CoordinatorSynthesizer(caller)

    async def generate(self, request: GenerationRequest) -> str:
        if request.document_type is DocumentType.IDEA:
            return await self.generate_idea(request)

        strategy = STRATEGIES[request.tier]
        drafts = await self.fan_out(strategy.roles, request.prompt)

        if strategy.combine is Combine.NONE:
            return drafts[0].text
        if strategy.combine is Combine.MERGE:
            primary, secondary = drafts
            return merge_drafts(primary.text, secondary.text)
        return await self.synthesizer.synthesize(request.prompt, drafts)

    async def generate_idea(self, request: GenerationRequest) -> str:
        role = idea_role_for(request.tier)
        draft = await self.caller.call(role, build_idea_prompt(request.prompt, request.focus))
        return draft.text

    async def fan_out(self, roles: Tuple[AgentRole, ...], message: str) -> List[Draft]:
        """
        Start one call per role together and wait for all of them.

        The first failure fails the whole batch; drafts that did succeed are
        discarded and nothing is retried here.
        """
        if len(roles) == 1:
            return [await self.caller.call(roles[0], message)]

        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(self.caller.call(role, message)) for role in roles]
        except ExceptionGroup as eg:
            raise _first_upstream_error(eg) from eg
        return [task.result() for task in tasks]


def _first_upstream_error(eg: ExceptionGroup) -> UpstreamGenerationError:
    for exc in eg.exceptions:
        if isinstance(exc, UpstreamGenerationError):
            return exc
    first = eg.exceptions[0]
    logger.error("Agent task failed unexpectedly: %r", first)
    return UpstreamGenerationError(f"Agent task failed: {first}")
