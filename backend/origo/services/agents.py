"""
Agent roles and the Agent Caller

An agent is one configured call to the text-generation provider with a
fixed persona. Roles are static configuration.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional

from origo.adapters.llm import BaseLLMAdapter, LLMAdapterError, LLMConfig
from origo.config import Settings, get_settings
from origo.errors import UpstreamGenerationError

logger = logging.getLogger(__name__)


class ModelClass(str, Enum):
    FAST = "fast"
    STRONG = "strong"


@dataclass(frozen=True)
class AgentRole:
    """Fixed descriptor for one kind of agent"""
    name: str
    perspective: str  # label used when drafts are shown to the coordinator
    instructions: str
    focus: str
    model_class: ModelClass
    max_tokens: int


@dataclass(frozen=True)
class Draft:
    """Text produced by one agent call"""
    role: AgentRole
    text: str


_SECTION_STYLE = (
    "Write in markdown with clear ## section headings. "
    "Be thorough, concrete, and professional."
)

OVERVIEW_ROLE = AgentRole(
    name="overview",
    perspective="Project Manager",
    instructions=(
        "You are an expert project manager writing a professional project brief.\n"
        "Focus on: project overview, context, goals, objectives, scope (what is included / "
        "excluded), key deliverables and expected outcomes.\n" + _SECTION_STYLE
    ),
    focus="operational overview",
    model_class=ModelClass.FAST,
    max_tokens=2048,
)

TECHNICAL_ROLE = AgentRole(
    name="technical",
    perspective="Technical Lead",
    instructions=(
        "You are a senior technical lead writing the technical part of a project brief.\n"
        "Focus on: technical requirements, architecture decisions, integration points, team "
        "roles and responsibilities, estimated timeline with milestones, risks and mitigation "
        "strategies, success metrics and KPIs.\n" + _SECTION_STYLE
    ),
    focus="technical delivery",
    model_class=ModelClass.FAST,
    max_tokens=2048,
)

STRATEGIC_ROLE = AgentRole(
    name="strategic",
    perspective="Strategic Analyst",
    instructions=(
        "You are a strategic business analyst writing a strategic project brief.\n"
        "Focus on: business context and problem statement, strategic alignment, stakeholder "
        "analysis, budget considerations, dependencies and constraints, alternative approaches "
        "considered, governance and sign-off requirements.\n" + _SECTION_STYLE
    ),
    focus="business strategy",
    model_class=ModelClass.FAST,
    max_tokens=2048,
)

# Single-agent tier: the overview persona with the full budget
GENERAL_ROLE = replace(OVERVIEW_ROLE, name="general", max_tokens=4096)

COORDINATOR_ROLE = AgentRole(
    name="coordinator",
    perspective="Project Director",
    instructions=(
        "You are a senior project director reviewing multiple brief drafts from different "
        "specialists.\n"
        "Your task: synthesize the best comprehensive project brief by taking the strongest, "
        "most concrete and actionable elements from each draft.\n"
        "Rules:\n"
        "- Eliminate duplicates; keep the best version of each topic\n"
        "- Structure logically with clear ## section headings\n"
        "- Preserve technical accuracy and concrete details\n"
        "- Output one unified, professional project brief in markdown\n"
        "- Do NOT mention that this was synthesized from multiple drafts"
    ),
    focus="synthesis",
    model_class=ModelClass.STRONG,
    max_tokens=6000,
)


def default_models(settings: Optional[Settings] = None) -> Dict[ModelClass, str]:
    settings = settings or get_settings()
    return {
        ModelClass.FAST: settings.ANTHROPIC_FAST_MODEL,
        ModelClass.STRONG: settings.ANTHROPIC_STRONG_MODEL,
    }


class AgentCaller:
    """Runs a single blocking provider call for a role"""

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        models: Optional[Dict[ModelClass, str]] = None,
        timeout: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        settings = get_settings()
        self.adapter = adapter
        self.models = models or default_models(settings)
        self.timeout = timeout or settings.LLM_REQUEST_TIMEOUT
        self.temperature = (
            temperature if temperature is not None else settings.LLM_DEFAULT_TEMPERATURE
        )

    def config_for(self, role: AgentRole) -> LLMConfig:
        return LLMConfig(
            model=self.models[role.model_class],
            temperature=self.temperature,
            max_tokens=role.max_tokens,
            timeout=self.timeout,
        )

    async def call(self, role: AgentRole, message: str) -> Draft:
        """
        Call the provider with the role's instructions.

        Raises:
            UpstreamGenerationError: On any provider failure or empty output
        """
        config = self.config_for(role)
        try:
            response = await self.adapter.execute(
                message, config=config, system_prompt=role.instructions
            )
        except LLMAdapterError as e:
            logger.error("Agent %s failed on %s: %s", role.name, config.model, e)
            raise UpstreamGenerationError(
                f"Agent {role.name} failed", role=role.name, details=e.details
            ) from e

        text = (response.content or "").strip()
        if not text:
            logger.error("Agent %s returned empty output (%s)", role.name, config.model)
            raise UpstreamGenerationError(f"Empty response from agent {role.name}", role=role.name)

        logger.debug(
            "Agent %s done: model=%s latency_ms=%s cost_usd=%s",
            role.name, config.model, response.latency_ms, response.estimated_cost_usd,
        )
        return Draft(role=role, text=text)
