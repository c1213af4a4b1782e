"""Password hashing and JWT issue/validation for authentication."""

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, NamedTuple

import bcrypt
import jwt
from pydantic import ValidationError as PydanticValidationError

from devnexus.core.config import JWT_SECRET_MIN_BYTES, Settings, get_settings
from devnexus.core.errors import ConfigurationError
from devnexus.core.roles import Role
from devnexus.schemas.auth import TokenClaims

if TYPE_CHECKING:
    from devnexus.models.user import User

logger = logging.getLogger(__name__)

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

JWT_ALGORITHM = "HS256"

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 100
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128


class IssuedToken(NamedTuple):
    token: str
    expires_at: datetime


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _signing_key(settings: Settings) -> str:
    """Return the HMAC key or raise ConfigurationError if it is absent or shorter than 32 bytes."""
    if settings.JWT_SECRET is None:
        raise ConfigurationError("JWT_SECRET is not configured; token issuance is disabled.")
    secret = settings.JWT_SECRET.get_secret_value()
    if len(secret.encode("utf-8")) < JWT_SECRET_MIN_BYTES:
        raise ConfigurationError(
            f"JWT_SECRET must be at least {JWT_SECRET_MIN_BYTES} bytes long."
        )
    return secret


def check_signing_key(settings: Settings | None = None) -> None:
    """Raise ConfigurationError when tokens cannot be issued. Called once at startup."""
    _signing_key(settings or get_settings())


def create_access_token(user: "User", settings: Settings | None = None) -> IssuedToken:
    """
    Create a signed JWT for the user.

    Claims: sub, name, email, role, UserId, UserName, iss, aud, iat, exp.
    Raises ConfigurationError if the signing key is unusable.
    """
    settings = settings or get_settings()
    secret = _signing_key(settings)
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "name": user.display_name or user.username,
        "email": user.email or "",
        "role": user.role or Role.USER.value,
        "UserId": str(user.id),
        "UserName": user.username or "",
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": expire,
    }
    token = jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
    # exp is serialized as whole seconds; report the same instant the token carries.
    return IssuedToken(token=token, expires_at=expire.replace(microsecond=0))


def decode_access_token(token: str, settings: Settings | None = None) -> TokenClaims | None:
    """
    Verify signature, issuer, audience and expiry (no clock skew) and return the claims.

    Every failure (malformed, expired, bad signature, wrong issuer/audience, missing
    claims, unusable key) returns None. The reason is only logged.
    """
    settings = settings or get_settings()
    try:
        secret = _signing_key(settings)
    except ConfigurationError:
        return None
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            leeway=0,
            options={"require": ["exp", "iat", "sub", "iss", "aud"]},
        )
    except jwt.PyJWTError as e:
        logger.debug("Token rejected", extra={"reason": type(e).__name__})
        return None
    try:
        return TokenClaims.model_validate(payload)
    except PydanticValidationError:
        logger.debug("Token rejected", extra={"reason": "claims"})
        return None


def get_user_id_from_token(token: str, settings: Settings | None = None) -> str | None:
    """Return the UserId claim of a valid token, else None."""
    claims = decode_access_token(token, settings)
    return claims.user_id if claims is not None else None
