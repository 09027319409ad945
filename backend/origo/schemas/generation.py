"""
Generation Schemas
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from origo.config import get_settings
from origo.services.dispatcher import DocumentType, IdeaFocus
from origo.utils.security import sanitize_input


def _resolve_focus(value: Optional[str]) -> IdeaFocus:
    """Unknown or missing focus falls back to balanced depth"""
    if isinstance(value, IdeaFocus):
        return value
    try:
        return IdeaFocus(str(value).strip().lower())
    except ValueError:
        return IdeaFocus.BRIEF


def _check_idea(value: str) -> str:
    """Trim, enforce the minimum length and cap the idea text"""
    settings = get_settings()
    idea = value.strip()
    if len(idea) < settings.MIN_IDEA_LENGTH:
        raise ValueError(
            f"Please describe your idea (minimum {settings.MIN_IDEA_LENGTH} characters)"
        )
    return idea[:settings.MAX_IDEA_LENGTH]


class GenerateRequest(BaseModel):
    """Brief generation request"""
    prompt: str = Field(..., min_length=1)
    document_type: DocumentType = DocumentType.BRIEF
    focus: IdeaFocus = IdeaFocus.BRIEF

    @field_validator("prompt")
    @classmethod
    def sanitize_prompt(cls, v: str) -> str:
        max_length = get_settings().MAX_PROMPT_LENGTH
        if len(v) > max_length:
            raise ValueError(f"Prompt too long (max {max_length} characters)")
        sanitized = sanitize_input(v)
        if not sanitized:
            raise ValueError("Prompt cannot be empty")
        return sanitized

    @field_validator("focus", mode="before")
    @classmethod
    def parse_focus(cls, v) -> IdeaFocus:
        return _resolve_focus(v)

    @model_validator(mode="after")
    def apply_idea_limits(self) -> "GenerateRequest":
        # idea documents get the same limits as the dedicated idea route
        if self.document_type is DocumentType.IDEA:
            self.prompt = _check_idea(self.prompt)
        return self


class IdeaRequest(BaseModel):
    """Idea-mode generation request"""
    idea: str
    focus: IdeaFocus = IdeaFocus.BRIEF

    @field_validator("idea")
    @classmethod
    def trim_idea(cls, v: str) -> str:
        return _check_idea(v)

    @field_validator("focus", mode="before")
    @classmethod
    def parse_focus(cls, v) -> IdeaFocus:
        return _resolve_focus(v)


class GenerateResponse(BaseModel):
    """Generated document with credit metadata"""
    content: str
    plan: str
    tier: int
    credits_charged: int
    credits_used: int
    credits_remaining: int  # -1 when unlimited


class QuotaResponse(BaseModel):
    """Current credit usage for the caller"""
    plan: str
    used: int
    limit: int  # -1 when unlimited
    remaining: int  # -1 when unlimited


class ErrorResponse(BaseModel):
    error: str
    code: str
    request_id: Optional[str] = None
