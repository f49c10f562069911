"""Tests for crm_auth.services.users.UserStore and the position seeding command."""

import unittest

from sqlalchemy.exc import IntegrityError

from crm_auth.core.security import verify_password
from crm_auth.models import Position, User
from crm_auth.scripts.seed_positions import seed_positions
from crm_auth.services.default_positions import DEFAULT_POSITIONS
from crm_auth.services.users import (
    DuplicateEmailError,
    PasswordChangeError,
    UnknownPositionError,
    UserStore,
)
from tests.support import make_engine, make_settings, open_session


class _EmptyStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.engine = make_engine()
        self.session = open_session(self.engine)
        self.store = UserStore(self.session)

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()

    def _create(self, email: str = "Jane.Doe@Example.com", role: str = "agent", **kwargs: object):
        return self.store.create_user(
            email=email,
            password=kwargs.pop("password", "initial-password"),
            full_name=kwargs.pop("full_name", "Jane Doe"),
            role=role,
            bcrypt_rounds=4,
            **kwargs,
        )


class TestCreateUser(_EmptyStoreTestCase):
    def test_email_stored_normalized_and_found_case_insensitively(self) -> None:
        user = self._create()
        self.assertEqual(user.email, "jane.doe@example.com")
        self.assertEqual(self.store.find_user_by_email("JANE.DOE@example.COM").id, user.id)
        self.assertTrue(user.is_active)

    def test_password_is_hashed(self) -> None:
        user = self._create(password="initial-password")
        self.assertNotEqual(user.password_hash, "initial-password")
        self.assertTrue(verify_password("initial-password", user.password_hash))

    def test_duplicate_email_differing_only_in_case_is_rejected(self) -> None:
        self._create(email="dup@example.com")
        with self.assertRaises(DuplicateEmailError):
            self._create(email="DUP@example.com")

    def test_empty_password_is_rejected(self) -> None:
        with self.assertRaises(PasswordChangeError):
            self._create(password="")

    def test_unknown_role_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self._create(role="superuser")

    def test_unknown_position_is_rejected(self) -> None:
        with self.assertRaises(UnknownPositionError):
            self._create(position_id=12345)

    def test_without_positions_user_has_no_position(self) -> None:
        user = self._create(role="manager")
        self.assertIsNone(user.position_id)

    def test_default_position_follows_role(self) -> None:
        seed_positions(self.store, self.settings.ADMIN_LEVEL_THRESHOLD)
        expected = {"admin": "Admin", "owner": "Director", "manager": "Manager", "agent": "Agent"}
        for role, position_name in expected.items():
            with self.subTest(role=role):
                user = self._create(email=f"{role}@example.com", role=role)
                self.assertEqual(user.position.name, position_name)

    def test_explicit_position_wins_over_role_default(self) -> None:
        seed_positions(self.store, self.settings.ADMIN_LEVEL_THRESHOLD)
        lead = self.store.find_position_by_name("Team Lead")
        user = self._create(role="agent", position_id=lead.id)
        self.assertEqual(user.position_id, lead.id)


class TestChangePassword(_EmptyStoreTestCase):
    def test_requires_current_password(self) -> None:
        user = self._create(password="initial-password")
        with self.assertRaises(PasswordChangeError):
            self.store.change_password(user, "not-it", "next-password-1", bcrypt_rounds=4)
        self.store.change_password(user, "initial-password", "next-password-1", bcrypt_rounds=4)
        self.assertTrue(verify_password("next-password-1", user.password_hash))
        self.assertFalse(verify_password("initial-password", user.password_hash))


class TestSetUserActive(_EmptyStoreTestCase):
    def test_toggle(self) -> None:
        user = self._create()
        self.store.set_user_active(user, False)
        self.assertFalse(self.store.find_user_by_id(user.id).is_active)
        self.store.set_user_active(user, True)
        self.assertTrue(self.store.find_user_by_id(user.id).is_active)



class TestUserTableConstraints(_EmptyStoreTestCase):
    """Database-level guards on the users table."""

    def test_active_user_with_empty_hash_fails_on_commit(self) -> None:
        user = self._create()
        user.password_hash = ""
        with self.assertRaises(IntegrityError):
            self.session.commit()
        self.session.rollback()
        self.assertNotEqual(self.store.find_user_by_id(user.id).password_hash, "")

    def test_inactive_user_may_have_empty_hash(self) -> None:
        user = self._create()
        user.is_active = False
        user.password_hash = ""
        self.session.commit()
        self.assertEqual(self.store.find_user_by_id(user.id).password_hash, "")

    def test_email_unique_regardless_of_case(self) -> None:
        self._create(email="dup@example.com")
        self.session.add(User(email="DUP@example.com", password_hash="x", full_name="Dup", role="agent"))
        with self.assertRaises(IntegrityError):
            self.session.commit()
        self.session.rollback()

class TestPositions(_EmptyStoreTestCase):
    """Positions keep is_admin == (level >= threshold or name == 'Admin')."""

    def test_seed_is_idempotent(self) -> None:
        seed_positions(self.store, 6)
        seed_positions(self.store, 6)
        positions = self.store.list_positions()
        self.assertEqual([p.name for p in positions], [p["name"] for p in DEFAULT_POSITIONS])
        self.assertEqual([p.name for p in positions if p.is_admin], ["Admin"])

    def test_upsert_derives_admin_flag(self) -> None:
        owner = self.store.upsert_position("Owner", 7, {"deals": {"view": True}}, admin_level_threshold=6)
        clerk = self.store.upsert_position("Clerk", 1, {}, admin_level_threshold=6)
        self.assertTrue(owner.is_admin)
        self.assertFalse(clerk.is_admin)

        clerk = self.store.upsert_position("Clerk", 8, {}, admin_level_threshold=6)
        self.assertTrue(clerk.is_admin)

    def test_upsert_drops_malformed_permission_entries(self) -> None:
        position = self.store.upsert_position(
            "Clerk",
            1,
            {"deals": {"view": True, "fly": True, "edit": "yes"}, "book": None},
            admin_level_threshold=6,
        )
        self.assertEqual(position.permissions, {"deals": {"view": True}})

    def test_upsert_rejects_non_positive_level(self) -> None:
        with self.assertRaises(ValueError):
            self.store.upsert_position("Clerk", 0, {}, admin_level_threshold=6)

    def test_sync_admin_flags_repairs_drift(self) -> None:
        seed_positions(self.store, 6)
        director = self.store.find_position_by_name("Director")
        admin = self.store.find_position_by_name("Admin")
        director.is_admin = True
        admin.is_admin = False
        self.session.add(Position(name="Legacy", level=9, permissions={}, is_admin=False))
        self.session.commit()

        changed = self.store.sync_admin_flags(6)
        self.assertEqual(changed, 3)
        self.assertFalse(self.store.find_position_by_name("Director").is_admin)
        self.assertTrue(self.store.find_position_by_name("Admin").is_admin)
        self.assertTrue(self.store.find_position_by_name("Legacy").is_admin)
        self.assertEqual(self.store.sync_admin_flags(6), 0)

    def test_lower_threshold_promotes_director(self) -> None:
        seed_positions(self.store, 6)
        self.assertEqual(self.store.sync_admin_flags(5), 1)
        self.assertTrue(self.store.find_position_by_name("Director").is_admin)


if __name__ == "__main__":
    unittest.main()
