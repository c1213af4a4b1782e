"""
Create a user (e.g. first admin). Run from project root:
  python -m devnexus.scripts.create_user USERNAME PASSWORD [role]
Example:
  python -m devnexus.scripts.create_user admin your-secure-password Admin
"""
import argparse
import logging
import sys
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from devnexus.core.database import SessionLocal, init_db
from devnexus.core.roles import Role
from devnexus.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
)
from devnexus.models.user import User

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a DevNexus user (no registration UI).")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.USER.value,
        choices=[r.value for r in Role],
    )
    parser.add_argument("--email", default="", help="Email address")
    parser.add_argument("--display-name", default="", help="Display name (defaults to username)")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    init_db()
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        user = User(
            id=f"user-{uuid4().hex[:12]}",
            username=username,
            email=args.email,
            display_name=args.display_name or username,
            password_hash=hash_password(args.password),
            role=args.role,
            is_active=True,
        )
        db.add(user)
        db.commit()
        print(f"Created user '{username}' with role '{args.role}'.")
        return 0
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create user")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    sys.exit(main())
