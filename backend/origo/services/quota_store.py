"""
Quota Stores
Persistent usage counters with a store-evaluated conditional increment
"""

import threading
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from origo.config import BILLING_PERIOD_DAYS, UNLIMITED, PlanName
from origo.errors import AccountNotFoundError
from origo.models import AccountUsage
from origo.utils.database import get_db_context

# Returned by consume_atomic when the conditional increment is rejected
INSUFFICIENT_SENTINEL = -2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccountSnapshot:
    """Point-in-time read of an account's usage record"""
    account_id: str
    plan: PlanName
    used_count: int
    period_start: datetime
    period_end: datetime


class QuotaStore(ABC):
    """Storage for per-account usage counters"""

    @abstractmethod
    async def get_account(self, account_id: str) -> Optional[AccountSnapshot]:
        """Read the usage record, or None if the account has none"""
        pass

    @abstractmethod
    async def open_account(self, account_id: str, plan: PlanName = PlanName.FREE) -> AccountSnapshot:
        """Create the usage record if missing; returns the current record"""
        pass

    @abstractmethod
    async def consume_atomic(self, account_id: str, cost: int, limit: int) -> int:
        """
        Increment used_count by cost only if used_count + cost <= limit
        (always when limit is UNLIMITED), as one operation evaluated by the
        store.

        Returns:
            The new used_count, or INSUFFICIENT_SENTINEL if rejected

        Raises:
            AccountNotFoundError: If the account has no usage record
        """
        pass

    @abstractmethod
    async def reset_usage(self, account_id: str) -> AccountSnapshot:
        """Zero the counter and start a new billing period"""
        pass

    @abstractmethod
    async def set_plan(self, account_id: str, plan: PlanName) -> AccountSnapshot:
        """Change the plan recorded for the account"""
        pass

    @abstractmethod
    async def delete_account(self, account_id: str) -> bool:
        """Remove the usage record; returns False if it did not exist"""
        pass


class SqlQuotaStore(QuotaStore):
    """Usage counters in the relational database (shared by all instances)"""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = get_db_context,
    ):
        self._session = session_factory

    @staticmethod
    def _snapshot(row: AccountUsage) -> AccountSnapshot:
        return AccountSnapshot(
            account_id=row.account_id,
            plan=row.plan,
            used_count=row.used_count,
            period_start=row.period_start,
            period_end=row.period_end,
        )

    async def get_account(self, account_id: str) -> Optional[AccountSnapshot]:
        async with self._session() as db:
            row = await db.get(AccountUsage, account_id)
            return self._snapshot(row) if row else None

    async def open_account(self, account_id: str, plan: PlanName = PlanName.FREE) -> AccountSnapshot:
        async with self._session() as db:
            row = await db.get(AccountUsage, account_id)
            if row is not None:
                return self._snapshot(row)
            row = AccountUsage(account_id=account_id, plan=plan, used_count=0)
            db.add(row)
            try:
                await db.flush()
                return self._snapshot(row)
            except IntegrityError:
                # Opened concurrently by another request
                await db.rollback()
        existing = await self.get_account(account_id)
        if existing is None:
            raise AccountNotFoundError(f"Usage record for {account_id} could not be created")
        return existing

    async def consume_atomic(self, account_id: str, cost: int, limit: int) -> int:
        stmt = update(AccountUsage).where(AccountUsage.account_id == account_id)
        if limit != UNLIMITED:
            stmt = stmt.where(AccountUsage.used_count + cost <= limit)
        stmt = (
            stmt.values(used_count=AccountUsage.used_count + cost, updated_at=_utcnow())
            .returning(AccountUsage.used_count)
            .execution_options(synchronize_session=False)
        )

        async with self._session() as db:
            result = await db.execute(stmt)
            new_count = result.scalar_one_or_none()
            if new_count is not None:
                return new_count
            exists = await db.scalar(
                select(AccountUsage.account_id).where(AccountUsage.account_id == account_id)
            )
        if exists is None:
            raise AccountNotFoundError(f"No usage record for account {account_id}")
        return INSUFFICIENT_SENTINEL

    async def _update(self, account_id: str, **values) -> AccountSnapshot:
        async with self._session() as db:
            result = await db.execute(
                update(AccountUsage)
                .where(AccountUsage.account_id == account_id)
                .values(updated_at=_utcnow(), **values)
                .returning(AccountUsage)
                .execution_options(synchronize_session=False)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise AccountNotFoundError(f"No usage record for account {account_id}")
            return self._snapshot(row)

    async def reset_usage(self, account_id: str) -> AccountSnapshot:
        now = _utcnow()
        return await self._update(
            account_id,
            used_count=0,
            period_start=now,
            period_end=now + timedelta(days=BILLING_PERIOD_DAYS),
        )

    async def set_plan(self, account_id: str, plan: PlanName) -> AccountSnapshot:
        return await self._update(account_id, plan=plan)

    async def delete_account(self, account_id: str) -> bool:
        async with self._session() as db:
            result = await db.execute(
                delete(AccountUsage).where(AccountUsage.account_id == account_id)
            )
            return result.rowcount > 0


class MemoryQuotaStore(QuotaStore):
    """
    In-process usage counters.

    Conditional increments are serialized by a lock, which makes them atomic
    within one process only. Not horizontally scalable: use SqlQuotaStore
    whenever more than one instance serves traffic.
    """

    def __init__(self):
        self._accounts: Dict[str, AccountSnapshot] = {}
        self._lock = threading.Lock()

    def _require(self, account_id: str) -> AccountSnapshot:
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(f"No usage record for account {account_id}")
        return account

    async def get_account(self, account_id: str) -> Optional[AccountSnapshot]:
        return self._accounts.get(account_id)

    async def open_account(
        self,
        account_id: str,
        plan: PlanName = PlanName.FREE,
        used_count: int = 0,
    ) -> AccountSnapshot:
        with self._lock:
            if account_id not in self._accounts:
                now = _utcnow()
                self._accounts[account_id] = AccountSnapshot(
                    account_id=account_id,
                    plan=plan,
                    used_count=used_count,
                    period_start=now,
                    period_end=now + timedelta(days=BILLING_PERIOD_DAYS),
                )
            return self._accounts[account_id]

    async def consume_atomic(self, account_id: str, cost: int, limit: int) -> int:
        with self._lock:
            account = self._require(account_id)
            if limit != UNLIMITED and account.used_count + cost > limit:
                return INSUFFICIENT_SENTINEL
            account = replace(account, used_count=account.used_count + cost)
            self._accounts[account_id] = account
            return account.used_count

    async def reset_usage(self, account_id: str) -> AccountSnapshot:
        with self._lock:
            now = _utcnow()
            account = replace(
                self._require(account_id),
                used_count=0,
                period_start=now,
                period_end=now + timedelta(days=BILLING_PERIOD_DAYS),
            )
            self._accounts[account_id] = account
            return account

    async def set_plan(self, account_id: str, plan: PlanName) -> AccountSnapshot:
        with self._lock:
            account = replace(self._require(account_id), plan=plan)
            self._accounts[account_id] = account
            return account

    async def delete_account(self, account_id: str) -> bool:
        with self._lock:
            return self._accounts.pop(account_id, None) is not None
