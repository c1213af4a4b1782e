"""
Credential validation, login and token refresh.

Which credential check runs is a deployment decision (CREDENTIAL_VERIFIER):
bcrypt against the stored hash by default, or a shared development password.
"""

import hmac
import logging
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devnexus.core.config import Settings, get_settings
from devnexus.core.errors import NotFoundError, TransientStoreError, ValidationError
from devnexus.core.security import create_access_token, verify_password
from devnexus.models.user import User
from devnexus.schemas.auth import CurrentUser, LoginResponse, RefreshTokenResponse, UserOut

logger = logging.getLogger(__name__)


class CredentialVerifier(Protocol):
    def verify(self, user: User, password: str) -> bool: ...


class PasswordHashVerifier:
    """Compare the password against the user's bcrypt hash. Users without a hash never pass."""

    def verify(self, user: User, password: str) -> bool:
        if not user.password_hash:
            return False
        return verify_password(password, user.password_hash)


class DevelopmentPasswordVerifier:
    """Accept one shared password for every existing user. Development only."""

    def __init__(self, password: str) -> None:
        self._password = password.encode("utf-8")

    def verify(self, user: User, password: str) -> bool:
        return hmac.compare_digest(password.encode("utf-8"), self._password)


def get_credential_verifier(settings: Settings | None = None) -> CredentialVerifier:
    settings = settings or get_settings()
    if settings.CREDENTIAL_VERIFIER == "development":
        return DevelopmentPasswordVerifier(settings.DEV_PASSWORD.get_secret_value())
    return PasswordHashVerifier()


def get_user_by_username(db: Session, username: str) -> User | None:
    """Exact, case-sensitive lookup."""
    try:
        return db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as e:
        raise TransientStoreError("Failed to load user", errors=[str(e)], cause=e) from e


def get_user_by_id(db: Session, user_id: str) -> User | None:
    try:
        return db.get(User, user_id)
    except SQLAlchemyError as e:
        raise TransientStoreError("Failed to load user", errors=[str(e)], cause=e) from e


def list_users(db: Session) -> list[User]:
    try:
        return db.query(User).order_by(User.id).all()
    except SQLAlchemyError as e:
        raise TransientStoreError("Failed to load users", errors=[str(e)], cause=e) from e


def _require_credentials(username: str, password: str) -> None:
    if not username or not password:
        raise ValidationError("Username and password are required")


def _find_login_user(
    db: Session,
    username: str,
    password: str,
    verifier: CredentialVerifier,
) -> User | None:
    user = get_user_by_username(db, username)
    if user is None or not user.is_active:
        return None
    if not verifier.verify(user, password):
        return None
    return user


def validate_credentials(
    db: Session,
    username: str,
    password: str,
    verifier: CredentialVerifier | None = None,
) -> bool:
    """True when the user exists, is active and the password checks out. Empty input is False."""
    if not username or not password:
        return False
    verifier = verifier or get_credential_verifier()
    return _find_login_user(db, username, password, verifier) is not None


def authenticate(
    db: Session,
    username: str,
    password: str,
    settings: Settings | None = None,
    verifier: CredentialVerifier | None = None,
) -> LoginResponse | None:
    """
    Check credentials and issue an access token.

    Returns None for an unknown or inactive user or a wrong password; callers report all
    three the same way. Raises ValidationError for an empty username or password and
    ConfigurationError when no signing key is configured.
    """
    _require_credentials(username, password)
    settings = settings or get_settings()
    verifier = verifier or get_credential_verifier(settings)

    user = _find_login_user(db, username, password, verifier)
    if user is None:
        logger.warning("Login failed", extra={"username": username})
        return None

    issued = create_access_token(user, settings)
    try:
        user.last_login_at = datetime.now(UTC)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise TransientStoreError("Failed to record login", errors=[str(e)], cause=e) from e

    logger.info("User logged in", extra={"user_id": user.id, "username": user.username})
    return LoginResponse(
        token=issued.token,
        refresh_token=str(uuid4()),
        expires_at=issued.expires_at,
        user=UserOut.model_validate(user),
    )


def refresh_token(
    db: Session,
    principal: CurrentUser,
    settings: Settings | None = None,
) -> RefreshTokenResponse:
    """Issue a fresh token for the holder of a still-valid one. The old token stays valid until it expires."""
    user = get_user_by_id(db, principal.id)
    if user is None:
        raise NotFoundError("User not found")
    issued = create_access_token(user, settings)
    return RefreshTokenResponse(
        token=issued.token,
        refresh_token=str(uuid4()),
        expires_at=issued.expires_at,
    )
