"""ORM model for CRM user accounts (credential store)."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
    true,
)
from sqlalchemy.orm import relationship

from crm_auth.models.base import Base


class User(Base):
    """
    CRM user account for JWT authentication and position-based access control.

    email is stored lower-cased; role is one of ROLE_VALUES (see schemas.access).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    role = Column(String(32), nullable=False, default="agent")
    position_id = Column(
        Integer,
        ForeignKey("positions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    last_login = Column(DateTime(timezone=True), nullable=True)

    position = relationship("Position", lazy="joined")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'owner', 'manager', 'agent')", name="ck_users_role"),
        CheckConstraint("NOT is_active OR password_hash <> ''", name="ck_users_active_has_password"),
        Index("ix_users_email_lower", func.lower(email), unique=True),
    )
