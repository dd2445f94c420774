"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL NAME PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com "Site Admin" 'S3cure-pass' ADMIN
"""
import argparse
import logging
import sys

from email_validator import EmailNotValidError, validate_email

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
from app.core.roles import Role
from app.core.security import NAME_MIN_LEN, hash_password, password_policy_violations
from app.models.user import User

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a knowledge-base user account.")
    parser.add_argument("email", help="Email address (login name)")
    parser.add_argument("name", help=f"Display name ({NAME_MIN_LEN}+ chars)")
    parser.add_argument("password", help="Password (8+ chars, upper, lower and digit)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.VIEWER.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args(argv)
    configure_logging(get_settings())

    try:
        email = validate_email(args.email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        print(f"Invalid email: {e}", file=sys.stderr)
        return 1
    name = args.name.strip()
    if len(name) < NAME_MIN_LEN:
        print(f"Name must be at least {NAME_MIN_LEN} characters.", file=sys.stderr)
        return 1
    problems = password_policy_violations(args.password)
    if problems:
        print("; ".join(problems) + ".", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            email=email,
            name=name,
            password_hash=hash_password(args.password),
            role=Role(args.role),
            failed_login_attempts=0,
        )
        db.add(user)
        db.commit()
        logger.info("User created", extra={"user_id": user.id, "role": args.role})
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
