"""
Pydantic Schemas for API Request/Response validation
"""

from .generation import (
    GenerateRequest,
    IdeaRequest,
    GenerateResponse,
    QuotaResponse,
    ErrorResponse,
)

__all__ = [
    "GenerateRequest",
    "IdeaRequest",
    "GenerateResponse",
    "QuotaResponse",
    "ErrorResponse",
]
