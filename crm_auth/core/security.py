"""Password hashing and JWT creation/verification for authentication."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

if TYPE_CHECKING:
    from crm_auth.core.config import Settings

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Claims every access token must carry.
REQUIRED_CLAIMS = ("sub", "exp", "iat")

# Plaintext of the hash checked when a login names no usable account.
_DUMMY_PASSWORD = b"timing-equalizer"


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup (case-insensitive emails)."""
    return email.strip().lower()


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash (constant-time in bcrypt)."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(_DUMMY_PASSWORD, bcrypt.gensalt(rounds=rounds))


def burn_password_check(plain_password: str, rounds: int = 12) -> None:
    """Spend one bcrypt comparison at the given cost when there is no real hash to check."""
    bcrypt.checkpw(plain_password.encode("utf-8")[:72], _dummy_hash(rounds))


def create_access_token(
    settings: "Settings",
    sub: str | int,
    role: str,
    position_id: int | None,
    now: datetime | None = None,
) -> str:
    """Create a JWT access token with sub (user id), role, pos (position id), iat and exp."""
    issued = now or datetime.now(UTC)
    expire = issued + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": role,
        "pos": position_id,
        "exp": expire,
        "iat": issued,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(settings: "Settings", token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, role, pos, exp, iat).
    Raises jwt.ExpiredSignatureError on an expired token and jwt.PyJWTError on any other failure.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": list(REQUIRED_CLAIMS)},
    )
