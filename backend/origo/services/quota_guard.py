"""
Quota Guard
Advisory pre-check and atomic post-generation consumption of credits
"""

import logging
from dataclasses import dataclass
from typing import Optional

from origo.config import UNLIMITED, PlanName, plan_limit
from origo.services.quota_store import (
    INSUFFICIENT_SENTINEL,
    AccountSnapshot,
    QuotaStore,
)

logger = logging.getLogger(__name__)


@dataclass
class QuotaStatus:
    """Usage summary for an account"""
    account_id: str
    plan: PlanName
    used: int
    limit: int

    @property
    def remaining(self) -> int:
        """Credits left in the period (UNLIMITED for uncapped plans)"""
        if self.limit == UNLIMITED:
            return UNLIMITED
        return max(0, self.limit - self.used)


class QuotaGuard:
    """
    Two separate operations over a QuotaStore:

    - precheck(): cheap read, used to avoid paying for a generation that
      would certainly be rejected. Not authoritative: concurrent requests
      can all pass it.
    - consume(): the authoritative conditional increment, issued only after
      generation succeeded. Evaluated by the store, so two concurrent
      consumes can never both take the last unit of headroom.
    """

    def __init__(self, store: QuotaStore):
        self.store = store

    async def status(self, account_id: str, plan: Optional[PlanName] = None) -> QuotaStatus:
        account = await self.store.get_account(account_id)
        resolved = plan or (account.plan if account else PlanName.FREE)
        return QuotaStatus(
            account_id=account_id,
            plan=resolved,
            used=account.used_count if account else 0,
            limit=plan_limit(resolved),
        )

    async def precheck(self, account_id: str, cost: int = 1, plan: Optional[PlanName] = None) -> bool:
        """True if used + cost fits the plan limit (unlimited plans always pass)"""
        _check_cost(cost)
        status = await self.status(account_id, plan)
        if status.limit == UNLIMITED:
            return True
        return status.used + cost <= status.limit

    async def consume(self, account_id: str, cost: int, limit: int) -> int:
        """
        Atomically take cost credits if they fit under limit.

        Returns:
            The new used count, or INSUFFICIENT_SENTINEL when another request
            consumed the remaining headroom first
        """
        _check_cost(cost)
        new_count = await self.store.consume_atomic(account_id, cost, limit)
        if new_count == INSUFFICIENT_SENTINEL:
            logger.warning(
                "Quota consume rejected for %s (cost=%d, limit=%d)", account_id, cost, limit
            )
        return new_count

    async def ensure_account(self, account_id: str, plan: PlanName = PlanName.FREE) -> AccountSnapshot:
        """Open the usage record on first use"""
        return await self.store.open_account(account_id, plan)


def _check_cost(cost: int) -> None:
    if cost <= 0:
        raise ValueError(f"Cost must be positive, got {cost}")
