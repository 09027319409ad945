"""
Document Generation Routes
"""

from fastapi import APIRouter, Depends, Response

from origo.api.middleware.auth import AccountContext, get_current_account, get_pipeline
from origo.schemas.generation import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    IdeaRequest,
    QuotaResponse,
)
from origo.services import GenerationPipeline, GenerationRequest, GenerationResult
from origo.services.dispatcher import DocumentType

router = APIRouter()

_ERRORS = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 409, 429, 502)
}


def _to_response(result: GenerationResult, response: Response) -> GenerateResponse:
    response.headers.update(result.rate.headers())
    return GenerateResponse(
        content=result.content,
        plan=result.plan.value,
        tier=result.tier.value,
        credits_charged=result.credits_charged,
        credits_used=result.credits_used,
        credits_remaining=result.credits_remaining,
    )


@router.post("", response_model=GenerateResponse, responses=_ERRORS)
async def generate_document(
    body: GenerateRequest,
    response: Response,
    account: AccountContext = Depends(get_current_account),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """
    Generate a document with the strategy of the caller's plan.
    Credits are charged only once the document is complete.
    """
    result = await pipeline.generate(
        account.account_id,
        GenerationRequest(
            prompt=body.prompt,
            plan=account.plan,
            document_type=body.document_type,
            focus=body.focus,
        ),
    )
    return _to_response(result, response)


@router.post("/idea", response_model=GenerateResponse, responses=_ERRORS)
async def generate_idea(
    body: IdeaRequest,
    response: Response,
    account: AccountContext = Depends(get_current_account),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """Turn a rough idea into the five-section package"""
    result = await pipeline.generate(
        account.account_id,
        GenerationRequest(
            prompt=body.idea,
            plan=account.plan,
            document_type=DocumentType.IDEA,
            focus=body.focus,
        ),
    )
    return _to_response(result, response)


@router.get("/quota", response_model=QuotaResponse)
async def get_quota(
    account: AccountContext = Depends(get_current_account),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """Current credit usage for the caller"""
    status = await pipeline.quota.status(account.account_id, account.plan)
    return QuotaResponse(
        plan=status.plan.value,
        used=status.used,
        limit=status.limit,
        remaining=status.remaining,
    )
