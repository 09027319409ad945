"""
Utility modules for Origo
"""

from .database import (
    get_db_context,
    init_db,
    close_db,
)
from .security import (
    create_access_token,
    verify_access_token,
    sanitize_input,
)
from .cache import (
    get_redis,
    close_redis,
)

__all__ = [
    # Database
    "get_db_context",
    "init_db",
    "close_db",
    # Security
    "create_access_token",
    "verify_access_token",
    "sanitize_input",
    # Cache
    "get_redis",
    "close_redis",
]
