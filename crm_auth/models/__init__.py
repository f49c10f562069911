"""SQLAlchemy ORM models."""

from crm_auth.models.base import Base
from crm_auth.models.position import Position
from crm_auth.models.user import User

__all__ = ["Base", "Position", "User"]
