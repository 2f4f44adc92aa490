"""
Attach the standard subscription to a user's profile, so the trial no longer blocks login.
Run from project root:
  python -m app.scripts.add_subscription EMAIL
"""
import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.core.clock import utcnow
from app.core.database import SessionLocal
from app.services.users import UserNotFoundError, attach_subscription


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Attach a standard subscription to a user.")
    parser.add_argument("email", help="E-mail of the user")
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        return 1

    db = SessionLocal()
    try:
        user, attached = attach_subscription(db, args.email, utcnow())
        if attached:
            print(f"Subscription attached to {user.email}")
        else:
            print(f"{user.email} already has a subscription; left unchanged")
        return 0
    except UserNotFoundError:
        print("User not found", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        db.rollback()
        print(f"Failed to attach subscription: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
