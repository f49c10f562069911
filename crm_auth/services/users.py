"""Credential store: user and position lookups and writes over a SQLAlchemy session."""

import logging
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from crm_auth.core.security import hash_password, normalize_email, verify_password
from crm_auth.models import Position, User
from crm_auth.schemas.access import PermissionMap, coerce_permission_map, parse_role
from crm_auth.services.permissions import default_position_name, is_admin_position

logger = logging.getLogger(__name__)


class UserStoreError(Exception):
    """Base class for credential store failures the caller is expected to handle."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DuplicateEmailError(UserStoreError):
    """Raised when creating a user whose normalized email already exists."""


class PasswordChangeError(UserStoreError):
    """Raised when the current password does not match or the new one is unusable."""


class UnknownPositionError(UserStoreError):
    """Raised when a user is assigned to a position that does not exist."""


class UserStore:
    """
    Read/write access to users and positions.

    One store per request-scoped session; the store never keeps state of its own,
    so every call reflects the current database rows.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # -- users ---------------------------------------------------------------

    def find_user_by_email(self, email: str) -> User | None:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return (
            self.session.query(User)
            .filter(func.lower(User.email) == normalized)
            .first()
        )

    def find_user_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def create_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str = "agent",
        position_id: int | None = None,
        bcrypt_rounds: int = 12,
    ) -> User:
        """
        Create an active account. When position_id is None the role's default
        position is used if it exists.
        """
        normalized = normalize_email(email)
        role = parse_role(role)
        if not password:
            raise PasswordChangeError("Password must be non-empty for an active account")
        if self.find_user_by_email(normalized) is not None:
            raise DuplicateEmailError("User with this email already exists")

        position = self.resolve_position(role, position_id)
        position_id = position.id if position is not None else None

        user = User(
            email=normalized,
            password_hash=hash_password(password, rounds=bcrypt_rounds),
            full_name=full_name.strip(),
            role=role,
            position_id=position_id,
            is_active=True,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(
            "User created",
            extra={"user_id": user.id, "role": role, "position_id": position_id},
        )
        return user

    def resolve_position(self, role: str, position_id: int | None = None) -> Position | None:
        """
        Position a new account with this role would get: the explicit one, else the
        role's default position if it has been seeded.
        """
        if position_id is not None:
            position = self.find_position_by_id(position_id)
            if position is None:
                raise UnknownPositionError(f"Position {position_id} does not exist")
            return position
        return self.find_position_by_name(default_position_name(parse_role(role)))

    def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        bcrypt_rounds: int = 12,
    ) -> User:
        if not verify_password(current_password, user.password_hash):
            raise PasswordChangeError("Current password is incorrect")
        if not new_password:
            raise PasswordChangeError("New password must be non-empty")
        user.password_hash = hash_password(new_password, rounds=bcrypt_rounds)
        user.updated_at = datetime.now(UTC)
        self.session.commit()
        logger.info("Password changed", extra={"user_id": user.id})
        return user

    def record_login(self, user: User) -> None:
        user.last_login = datetime.now(UTC)
        self.session.commit()

    def set_user_active(self, user: User, active: bool) -> User:
        user.is_active = active
        user.updated_at = datetime.now(UTC)
        self.session.commit()
        logger.info("User active flag set", extra={"user_id": user.id, "is_active": active})
        return user

    # -- positions -----------------------------------------------------------

    def find_position_by_id(self, position_id: int) -> Position | None:
        return self.session.get(Position, position_id)

    def find_position_by_name(self, name: str) -> Position | None:
        return self.session.query(Position).filter(Position.name == name).first()

    def list_positions(self) -> list[Position]:
        return self.session.query(Position).order_by(Position.level, Position.id).all()

    def upsert_position(
        self,
        name: str,
        level: int,
        permissions: PermissionMap,
        admin_level_threshold: int,
        description: str | None = None,
    ) -> Position:
        """Create or update a position by name; is_admin is always re-derived."""
        if level < 1:
            raise ValueError("level must be at least 1")
        position = self.find_position_by_name(name)
        if position is None:
            position = Position(name=name)
            self.session.add(position)
        position.level = level
        position.description = description
        position.permissions = coerce_permission_map(permissions)
        position.is_admin = is_admin_position(name, level, admin_level_threshold)
        self.session.commit()
        self.session.refresh(position)
        return position

    def sync_admin_flags(self, admin_level_threshold: int) -> int:
        """Re-derive is_admin for every position; return how many rows changed."""
        changed = 0
        for position in self.list_positions():
            expected = is_admin_position(position.name, position.level, admin_level_threshold)
            if position.is_admin != expected:
                logger.info(
                    "Correcting admin flag",
                    extra={"position_id": position.id, "is_admin": expected},
                )
                position.is_admin = expected
                changed += 1
        self.session.commit()
        return changed
