"""
Origo Database Models
SQLAlchemy ORM for persistent usage counters
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, Enum, CheckConstraint
)
from sqlalchemy.orm import declarative_base

from origo.config import PlanName, BILLING_PERIOD_DAYS

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _period_end() -> datetime:
    return _utcnow() + timedelta(days=BILLING_PERIOD_DAYS)


# ============================================================================
# USAGE METERING
# ============================================================================

class AccountUsage(Base):
    """
    Per-account usage counter for the current billing period.

    used_count is only ever mutated through conditional UPDATE statements
    issued by the quota store; never read-modify-write it from Python.
    """
    __tablename__ = "account_usage"

    account_id = Column(String(64), primary_key=True)
    plan = Column(Enum(PlanName), default=PlanName.FREE, nullable=False)
    used_count = Column(Integer, default=0, nullable=False)

    # Billing period (rolled over by the billing collaborator)
    period_start = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    period_end = Column(DateTime(timezone=True), default=_period_end, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_account_usage_non_negative"),
    )
