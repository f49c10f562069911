"""ORM model for positions: named authorization tiers with a permission map."""

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Integer, String, Text, false, func
from sqlalchemy.dialects.postgresql import JSONB

from crm_auth.models.base import Base


class Position(Base):
    """
    Authorization tier. permissions maps section name -> {action: bool}.

    is_admin must equal (level >= ADMIN_LEVEL_THRESHOLD or name == "Admin");
    UserStore derives it on every write.
    """

    __tablename__ = "positions"
    __table_args__ = (CheckConstraint("level >= 1", name="ck_positions_level_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    level = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False, server_default=false())
    permissions = Column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=dict,
    )
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
