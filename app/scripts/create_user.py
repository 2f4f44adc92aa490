"""
Create a user (e.g. the first super admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@medsas.com your-secure-password SUPER_ADMIN
"""
import argparse
import sys

from app.core.clock import utcnow
from app.core.database import SessionLocal
from app.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from app.models import User
from app.schemas.users import USER_ROLE_VALUES


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a MedSAS user (no registration UI).")
    parser.add_argument("email", help="E-mail address (stored lowercase)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default="TENANT_USER",
        choices=sorted(USER_ROLE_VALUES),
    )
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    if "@" not in email or len(email) > EMAIL_MAX_LEN:
        print("Invalid e-mail address.", file=sys.stderr)
        return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            email=email,
            password_hash=hash_password(args.password),
            role=args.role,
            status="ACTIVE",
            profile="{}",
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        db.add(user)
        db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
