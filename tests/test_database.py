"""Unit tests for crm_auth.core.database: bounded pool settings and session release."""

import unittest
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from crm_auth.core import database
from crm_auth.core.database import check_db_connected, create_db_engine, get_db
from tests.support import make_settings


def _request_with_session(session: MagicMock) -> MagicMock:
    request = MagicMock()
    request.app.state.session_factory.return_value = session
    return request


class TestCreateDbEngine(unittest.TestCase):
    def test_pool_is_bounded_by_settings(self) -> None:
        settings = make_settings(DB_POOL_SIZE=7, DB_MAX_OVERFLOW=2, DB_POOL_TIMEOUT_SEC=4.5)
        with patch.object(database, "create_engine") as create_engine:
            create_db_engine(settings)
        kwargs = create_engine.call_args.kwargs
        self.assertEqual(create_engine.call_args.args[0], settings.DATABASE_URL)
        self.assertEqual(kwargs["pool_size"], 7)
        self.assertEqual(kwargs["max_overflow"], 2)
        self.assertEqual(kwargs["pool_timeout"], 4.5)
        self.assertTrue(kwargs["pool_pre_ping"])

    def test_default_settings_build_a_psycopg2_engine(self) -> None:
        engine = create_db_engine(make_settings())
        try:
            self.assertEqual(engine.dialect.name, "postgresql")
            self.assertEqual(engine.dialect.driver, "psycopg2")
        finally:
            engine.dispose()

    def test_postgres_scheme_builds_an_engine(self) -> None:
        engine = create_db_engine(make_settings(DATABASE_URL="postgres://u:p@db:5432/crm"))
        try:
            self.assertEqual(engine.dialect.driver, "psycopg2")
        finally:
            engine.dispose()


class TestGetDb(unittest.TestCase):
    """get_db always closes the session, and rolls back when the request fails."""

    def test_closes_after_success(self) -> None:
        session = MagicMock()
        gen = get_db(_request_with_session(session))
        self.assertIs(next(gen), session)
        with self.assertRaises(StopIteration):
            next(gen)
        session.close.assert_called_once()
        session.rollback.assert_not_called()

    def test_rolls_back_and_closes_on_error(self) -> None:
        session = MagicMock()
        gen = get_db(_request_with_session(session))
        next(gen)
        with self.assertRaises(RuntimeError):
            gen.throw(RuntimeError("handler failed"))
        session.rollback.assert_called_once()
        session.close.assert_called_once()


class TestCheckDbConnected(unittest.TestCase):
    def test_connected(self) -> None:
        session = MagicMock()
        self.assertTrue(check_db_connected(session))

    def test_disconnected(self) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
        self.assertFalse(check_db_connected(session))


if __name__ == "__main__":
    unittest.main()
