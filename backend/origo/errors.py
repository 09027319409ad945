"""
Domain errors for the generation pipeline
Each error carries the HTTP status and error code used by the API layer
"""

from datetime import datetime
from typing import Any, Dict, Optional


class GenerationError(Exception):
    """Base exception for pipeline errors surfaced to the caller"""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class GenerationValidationError(GenerationError):
    """Malformed or empty input"""
    status_code = 400
    code = "VALIDATION_ERROR"


class RateLimitedError(GenerationError):
    """Rate gate rejected the request"""
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(
        self,
        message: str,
        retry_after: int,
        reset_at: datetime,
        limit: int,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.retry_after = retry_after
        self.reset_at = reset_at
        self.limit = limit


class QuotaExceededPrecheckError(GenerationError):
    """Plan limit already reached before generation started"""
    status_code = 403
    code = "PLAN_LIMIT_REACHED"


class QuotaExceededConcurrentError(GenerationError):
    """Atomic consume lost a race after generation completed"""
    status_code = 409
    code = "INSUFFICIENT_CREDITS"


class UpstreamGenerationError(GenerationError):
    """A model call failed or returned unusable output"""
    status_code = 502
    code = "GENERATION_FAILED"

    def __init__(
        self,
        message: str,
        role: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.role = role


class AccountNotFoundError(GenerationError):
    """No usage record exists for the account"""
    status_code = 404
    code = "RESOURCE_NOT_FOUND"
