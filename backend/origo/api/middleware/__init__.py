"""
API Middleware
"""

from .auth import AccountContext, get_current_account, get_pipeline

__all__ = ["AccountContext", "get_current_account", "get_pipeline"]
