"""Shared helpers for tests that touch the in-memory database."""

from datetime import UTC, datetime

from devnexus.core.database import SessionLocal, engine
from devnexus.core.security import hash_password
from devnexus.models import Base, User
from devnexus.seed import seed


def reset_database(seed_data: bool = True) -> None:
    """Recreate every table, optionally loading the development data."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    if seed_data:
        db = SessionLocal()
        try:
            seed(db, now=datetime.now(UTC))
        finally:
            db.close()


def add_user(
    user_id: str,
    username: str,
    password: str | None = "password123",
    role: str = "User",
    is_active: bool = True,
) -> None:
    db = SessionLocal()
    try:
        db.add(
            User(
                id=user_id,
                username=username,
                email=f"{username}@company.com",
                display_name=username.title(),
                role=role,
                password_hash=hash_password(password) if password else None,
                is_active=is_active,
            )
        )
        db.commit()
    finally:
        db.close()
