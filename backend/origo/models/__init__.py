"""
Database Models for Origo
"""

from .database import (
    Base,
    AccountUsage,
)

__all__ = [
    "Base",
    "AccountUsage",
]
