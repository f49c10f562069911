"""
Seed the default positions (Agent .. Admin) and re-derive admin flags. Idempotent:
  python -m crm_auth.scripts.seed_positions
  python -m crm_auth.scripts.seed_positions --sync-only   # only fix is_admin on existing rows
"""
import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from crm_auth.core.config import get_settings
from crm_auth.core.database import create_db_engine, create_session_factory
from crm_auth.core.logging import configure_logging
from crm_auth.services.default_positions import DEFAULT_POSITIONS
from crm_auth.services.users import UserStore

logger = logging.getLogger(__name__)


def seed_positions(store: UserStore, admin_level_threshold: int) -> int:
    """Create or update every default position; return how many were written."""
    for entry in DEFAULT_POSITIONS:
        position = store.upsert_position(
            name=entry["name"],
            level=entry["level"],
            permissions=entry["permissions"],
            admin_level_threshold=admin_level_threshold,
            description=entry["description"],
        )
        logger.info(
            "Seeded position %s (level=%s, is_admin=%s)",
            position.name,
            position.level,
            position.is_admin,
        )
    return len(DEFAULT_POSITIONS)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed default CRM positions.")
    parser.add_argument(
        "--sync-only",
        action="store_true",
        help="Do not insert positions; only re-derive is_admin on existing rows",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    engine = create_db_engine(settings)
    db = create_session_factory(engine)()
    try:
        store = UserStore(db)
        if not args.sync_only:
            seeded = seed_positions(store, settings.ADMIN_LEVEL_THRESHOLD)
            logger.info("Seed completed: positions=%s", seeded)
        changed = store.sync_admin_flags(settings.ADMIN_LEVEL_THRESHOLD)
        logger.info("Admin flag sync completed: positions_changed=%s", changed)
        return 0
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Position seed failed: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
