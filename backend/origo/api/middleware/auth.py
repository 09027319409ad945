"""
Authentication Middleware
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from origo.config import PlanName
from origo.services import GenerationPipeline
from origo.utils import verify_access_token

security = HTTPBearer()


@dataclass
class AccountContext:
    """Authenticated caller with its resolved plan"""
    account_id: str
    plan: PlanName


def get_pipeline(request: Request) -> GenerationPipeline:
    """Pipeline wired by the app factory"""
    return request.app.state.pipeline


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    pipeline: GenerationPipeline = Depends(get_pipeline),
) -> AccountContext:
    """
    Dependency to get the current authenticated account.

    The plan comes from the account's usage record; accounts that have
    never generated anything are on the free plan.

    Raises:
        HTTPException: If token is invalid
    """
    account_id = verify_access_token(credentials.credentials)
    if account_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    account = await pipeline.quota.store.get_account(account_id)
    plan = account.plan if account else PlanName.FREE
    return AccountContext(account_id=account_id, plan=plan)
