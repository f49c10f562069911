"""Unit tests for crm_auth.core.security: bcrypt hashing and JWT encode/decode."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt

from crm_auth.core import security
from crm_auth.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    normalize_email,
    verify_password,
)
from tests.support import TEST_SECRET, make_settings


class TestPasswordHashing(unittest.TestCase):
    def test_hash_then_verify(self) -> None:
        hashed = hash_password("s3cret-password", rounds=4)
        self.assertNotEqual(hashed, "s3cret-password")
        self.assertTrue(verify_password("s3cret-password", hashed))
        self.assertFalse(verify_password("wrong-password", hashed))

    def test_empty_or_garbage_hash_never_verifies(self) -> None:
        self.assertFalse(verify_password("anything", ""))
        self.assertFalse(verify_password("anything", None))
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))

    def test_burn_check_uses_requested_cost(self) -> None:
        with patch.object(security.bcrypt, "gensalt", wraps=security.bcrypt.gensalt) as gensalt:
            security._dummy_hash.cache_clear()
            security.burn_password_check("anything", rounds=5)
        gensalt.assert_called_once_with(rounds=5)


class TestNormalizeEmail(unittest.TestCase):
    def test_strips_and_lowercases(self) -> None:
        self.assertEqual(normalize_email("  Admin@X.COM "), "admin@x.com")


class TestAccessToken(unittest.TestCase):
    """create_access_token / decode_access_token carry sub, role, pos, iat and exp."""

    def setUp(self) -> None:
        self.settings = make_settings()

    def test_round_trip_claims(self) -> None:
        token = create_access_token(self.settings, sub=42, role="agent", position_id=3)
        payload = decode_access_token(self.settings, token)
        self.assertEqual(payload["sub"], "42")
        self.assertEqual(payload["role"], "agent")
        self.assertEqual(payload["pos"], 3)
        self.assertEqual(payload["exp"] - payload["iat"], 60 * 60)

    def test_expired_token_raises_expired(self) -> None:
        past = datetime.now(UTC) - timedelta(hours=2)
        token = create_access_token(self.settings, sub=1, role="agent", position_id=None, now=past)
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(self.settings, token)

    def test_wrong_secret_raises_invalid_signature(self) -> None:
        other = make_settings(JWT_SECRET="another-secret")
        token = create_access_token(other, sub=1, role="agent", position_id=None)
        with self.assertRaises(jwt.InvalidSignatureError):
            decode_access_token(self.settings, token)

    def test_missing_exp_is_rejected(self) -> None:
        token = jwt.encode({"sub": "1", "iat": datetime.now(UTC)}, TEST_SECRET, algorithm="HS256")
        with self.assertRaises(jwt.MissingRequiredClaimError):
            decode_access_token(self.settings, token)

    def test_none_algorithm_is_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "1", "iat": datetime.now(UTC), "exp": datetime.now(UTC) + timedelta(hours=1)},
            None,
            algorithm="none",
        )
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(self.settings, token)


if __name__ == "__main__":
    unittest.main()
