"""
Security utilities - Authentication tokens, input sanitization
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from origo.config import get_settings

_HTML_TAG = re.compile(r"<[^>]*>")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_EXCESS_SPACES = re.compile(r" {3,}")


# JWT utilities
def create_access_token(
    account_id: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token"""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(account_id),
        "type": "access",
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token"""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[str]:
    """Verify an access token and return the account ID"""
    payload = decode_token(token)
    if payload is None:
        return None
    if payload.get("type") != "access":
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return subject


# Input sanitization
def sanitize_input(text: str) -> str:
    """
    Strip markup and excessive whitespace from user-supplied prompt text.

    - Removes HTML tags
    - Collapses 3+ consecutive newlines to 2
    - Collapses 3+ consecutive spaces to 2
    - Trims leading/trailing whitespace
    """
    sanitized = _HTML_TAG.sub("", text)
    sanitized = _EXCESS_NEWLINES.sub("\n\n", sanitized)
    sanitized = _EXCESS_SPACES.sub("  ", sanitized)
    return sanitized.strip()
