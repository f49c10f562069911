"""Core app configuration, database, security and errors."""

from crm_auth.core.config import Settings, get_settings
from crm_auth.core.database import get_db
from crm_auth.core.errors import AuthError

__all__ = ["AuthError", "Settings", "get_db", "get_settings"]
