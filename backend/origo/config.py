"""
Configuration management for the Origo brief generation service
Environment-based settings with secure defaults
"""

from enum import Enum
from functools import lru_cache
from typing import Dict, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "origo"
    APP_ENV: str = "development"  # development, staging, production
    DEBUG: bool = False
    API_VERSION: str = "v1"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database (usage counters)
    DATABASE_URL: str  # Required
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis (shared rate windows). Empty disables the shared store.
    REDIS_URL: Optional[str] = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 2.0

    # JWT Auth
    JWT_SECRET_KEY: str  # Required
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Text generation provider
    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_FAST_MODEL: str = "claude-haiku-4-5-20251001"
    ANTHROPIC_STRONG_MODEL: str = "claude-sonnet-4-6"

    # LLM Execution Settings
    LLM_DEFAULT_TEMPERATURE: float = 0.7
    LLM_REQUEST_TIMEOUT: int = 120  # seconds, per agent call

    # Rate Limiting (max requests per window)
    RATE_LIMIT_GENERATE_MAX: int = 5
    RATE_LIMIT_GENERATE_WINDOW: int = 60  # seconds
    RATE_LIMIT_ACTIVATE_MAX: int = 5
    RATE_LIMIT_ACTIVATE_WINDOW: int = 15 * 60
    RATE_LIMIT_CHECKOUT_MAX: int = 10
    RATE_LIMIT_CHECKOUT_WINDOW: int = 60
    RATE_LIMIT_PURGE_INTERVAL: int = 5 * 60  # local fallback cleanup

    # Input limits
    MAX_PROMPT_LENGTH: int = 5000
    MAX_IDEA_LENGTH: int = 2000
    MIN_IDEA_LENGTH: int = 10

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader"""
    return Settings()


class PlanName(str, Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class PlanTier(int, Enum):
    """Generation strategy selected by plan"""
    SINGLE = 1       # one general-purpose agent
    MERGED = 2       # overview + technical, merged by heading
    COORDINATED = 3  # three specialists + coordinator synthesis


class ActionKind(str, Enum):
    """Billable actions"""
    GENERATION = "generation"
    IDEA = "idea"


# Sentinel limit for plans without a generation cap
UNLIMITED = -1

# Plan/pricing table: plan -> generation limit per billing period and tier
PLANS: Dict[PlanName, Dict] = {
    PlanName.FREE: {"generation_limit": 3, "tier": PlanTier.SINGLE},
    PlanName.STARTER: {"generation_limit": 10, "tier": PlanTier.SINGLE},
    PlanName.PRO: {"generation_limit": 50, "tier": PlanTier.MERGED},
    PlanName.PREMIUM: {"generation_limit": 100, "tier": PlanTier.COORDINATED},
    PlanName.ENTERPRISE: {"generation_limit": UNLIMITED, "tier": PlanTier.COORDINATED},
}

# Credits consumed per action
ACTION_COSTS: Dict[ActionKind, int] = {
    ActionKind.GENERATION: 1,
    ActionKind.IDEA: 1,
}

# Billing period length used when opening a usage record
BILLING_PERIOD_DAYS = 30


def plan_limit(plan: PlanName) -> int:
    """Generation limit for a plan (UNLIMITED for uncapped plans)"""
    return PLANS[plan]["generation_limit"]


def plan_tier(plan: PlanName) -> PlanTier:
    """Strategy tier for a plan"""
    return PLANS[plan]["tier"]
