"""
Suspend a user by e-mail. Run from project root:
  python -m app.scripts.suspend_user EMAIL
"""
import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.core.clock import utcnow
from app.core.database import SessionLocal
from app.services.users import UserNotFoundError, set_status_by_email


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Set a user's status to SUSPENDED.")
    parser.add_argument("email", help="E-mail of the user to suspend")
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        return 1

    db = SessionLocal()
    try:
        user = set_status_by_email(db, args.email, "SUSPENDED", utcnow())
        print(f"User {user.email} suspended. New status: {user.status}")
        return 0
    except UserNotFoundError as e:
        print(f"Failed to suspend user: {e.message}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        db.rollback()
        print(f"Failed to suspend user: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
