"""
Coordinator Synthesizer
Rewrites several specialist drafts into a single document
"""

from typing import Sequence

from origo.services.agents import COORDINATOR_ROLE, AgentCaller, Draft


def build_coordinator_prompt(request_text: str, drafts: Sequence[Draft]) -> str:
    """Original request followed by every draft, labeled by its role"""
    parts = [f"PROJECT REQUEST:\n{request_text}"]
    for index, draft in enumerate(drafts, start=1):
        parts.append(
            f"---\nDRAFT {index} ({draft.role.perspective} perspective):\n{draft.text}"
        )
    return "\n\n".join(parts) + "\n"


class CoordinatorSynthesizer:
    """Exactly one coordinator-role call per synthesis; output is returned as-is"""

    def __init__(self, caller: AgentCaller):
        self.caller = caller

    async def synthesize(self, request_text: str, drafts: Sequence[Draft]) -> str:
        prompt = build_coordinator_prompt(request_text, drafts)
        result = await self.caller.call(COORDINATOR_ROLE, prompt)
        return result.text
