"""
Create a CRM user (e.g. first admin). Run from project root:
  python -m crm_auth.scripts.create_user EMAIL PASSWORD "FULL NAME" [--role ROLE] [--position NAME]
Example:
  python -m crm_auth.scripts.create_user admin@example.com your-secure-password "Site Admin" --role admin
"""
import argparse
import logging
import sys

from crm_auth.core.config import get_settings
from crm_auth.core.database import create_db_engine, create_session_factory
from crm_auth.core.logging import configure_logging
from crm_auth.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from crm_auth.schemas.access import ROLE_VALUES
from crm_auth.services.users import UserStore, UserStoreError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a CRM user (no registration UI).")
    parser.add_argument("email", help="Email address (stored lower-cased)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("full_name", help="Display name")
    parser.add_argument("--role", default="agent", choices=sorted(ROLE_VALUES))
    parser.add_argument(
        "--position",
        default=None,
        help="Position name; defaults to the role's default position",
    )
    args = parser.parse_args(argv)

    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    engine = create_db_engine(settings)
    db = create_session_factory(engine)()
    try:
        store = UserStore(db)
        position_id = None
        if args.position:
            position = store.find_position_by_name(args.position)
            if position is None:
                print(f"Position '{args.position}' does not exist.", file=sys.stderr)
                return 1
            position_id = position.id
        try:
            user = store.create_user(
                email=args.email,
                password=args.password,
                full_name=args.full_name,
                role=args.role,
                position_id=position_id,
                bcrypt_rounds=settings.BCRYPT_ROUNDS,
            )
        except UserStoreError as e:
            print(e.message, file=sys.stderr)
            return 1
        print(f"Created user '{user.email}' with role '{user.role}'.")
        return 0
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
