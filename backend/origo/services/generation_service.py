"""
Generation pipeline
Validation -> rate gate -> quota pre-check -> tiered generation -> atomic quota consume
"""

import logging
import time
from dataclasses import dataclass

from origo.config import (
    ACTION_COSTS,
    UNLIMITED,
    ActionKind,
    PlanName,
    PlanTier,
    plan_limit,
)
from origo.errors import (
    GenerationValidationError,
    QuotaExceededConcurrentError,
    QuotaExceededPrecheckError,
    RateLimitedError,
)
from origo.services.dispatcher import DocumentType, GenerationDispatcher, GenerationRequest
from origo.services.quota_guard import QuotaGuard
from origo.services.quota_store import INSUFFICIENT_SENTINEL
from origo.services.rate_gate import RateClass, RateDecision, RateGate

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    content: str
    plan: PlanName
    tier: PlanTier
    credits_charged: int
    credits_used: int
    credits_remaining: int  # UNLIMITED for uncapped plans
    rate: RateDecision
    elapsed_ms: int


class GenerationPipeline:
    """
    Orchestrates one generation request end to end.

    Quota is only consumed after a complete, successful generation, so a
    failed or abandoned generation never costs the account a credit.
    """

    def __init__(self, rate_gate: RateGate, quota: QuotaGuard, dispatcher: GenerationDispatcher):
        self.rate_gate = rate_gate
        self.quota = quota
        self.dispatcher = dispatcher

    async def generate(self, account_id: str, request: GenerationRequest) -> GenerationResult:
        started = time.monotonic()

        if not request.prompt or not request.prompt.strip():
            raise GenerationValidationError("Prompt cannot be empty")

        decision = await self.rate_gate.admit(account_id, RateClass.GENERATE)
        if not decision.allowed:
            logger.info("Rate limited %s, retry in %ss", account_id, decision.retry_after_seconds)
            raise RateLimitedError(
                "Too many requests. Please wait before generating another document.",
                retry_after=decision.retry_after_seconds,
                reset_at=decision.reset_at,
                limit=decision.limit,
            )

        action = ActionKind.IDEA if request.document_type is DocumentType.IDEA else ActionKind.GENERATION
        cost = ACTION_COSTS[action]
        limit = plan_limit(request.plan)

        if not await self.quota.precheck(account_id, cost, request.plan):
            status = await self.quota.status(account_id, request.plan)
            logger.info("Plan limit reached for %s (%s %d/%d)", account_id, request.plan.value, status.used, limit)
            raise QuotaExceededPrecheckError(
                "Plan limit reached. Upgrade your plan to generate more documents.",
                details={
                    "limit": limit,
                    "current": status.used,
                    "plan": request.plan.value,
                    "upgrade_required": True,
                },
            )

        content = await self.dispatcher.generate(request)

        await self.quota.ensure_account(account_id, request.plan)
        new_count = await self.quota.consume(account_id, cost, limit)
        if new_count == INSUFFICIENT_SENTINEL:
            raise QuotaExceededConcurrentError(
                "Insufficient credits: another request used the remaining credits "
                "while this document was being generated.",
                details={"limit": limit, "plan": request.plan.value, "upgrade_required": True},
            )

        remaining = UNLIMITED if limit == UNLIMITED else max(0, limit - new_count)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Generated %s for %s: plan=%s tier=%d credits=%d used=%d elapsed_ms=%d",
            request.document_type.value, account_id, request.plan.value,
            request.tier.value, cost, new_count, elapsed_ms,
        )

        return GenerationResult(
            content=content,
            plan=request.plan,
            tier=request.tier,
            credits_charged=cost,
            credits_used=new_count,
            credits_remaining=remaining,
            rate=decision,
            elapsed_ms=elapsed_ms,
        )
