"""Bearer-token authorization: header parsing, token validation and role checks."""

import logging
from collections.abc import Collection

from devnexus.core.config import Settings
from devnexus.core.errors import ForbiddenError, UnauthenticatedError
from devnexus.core.roles import Role
from devnexus.core.security import decode_access_token
from devnexus.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# 401 and 403 carry the same text; only the status tells them apart.
NOT_AUTHORIZED_MESSAGE = "You are not authorized to perform this action."


def extract_bearer_token(header: str | None) -> str:
    """Return the token from 'Bearer <token>'. Prefix is case-sensitive, token must be non-empty."""
    if not header or not header.startswith(BEARER_PREFIX):
        logger.warning("Authorization rejected", extra={"reason": "missing_bearer_header"})
        raise UnauthenticatedError(NOT_AUTHORIZED_MESSAGE)
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        logger.warning("Authorization rejected", extra={"reason": "empty_token"})
        raise UnauthenticatedError(NOT_AUTHORIZED_MESSAGE)
    return token


def authorize_token(
    token: str,
    required_roles: Collection[Role] = frozenset(),
    settings: Settings | None = None,
) -> CurrentUser:
    """
    Validate a raw token and check its role against required_roles.

    An empty role set admits any authenticated principal. A role claim that is not a
    known Role never satisfies a non-empty set.
    """
    claims = decode_access_token(token, settings)
    if claims is None:
        logger.warning("Authorization rejected", extra={"reason": "invalid_token"})
        raise UnauthenticatedError(NOT_AUTHORIZED_MESSAGE)
    principal = CurrentUser.from_claims(claims)
    if required_roles and Role.parse(principal.role) not in required_roles:
        logger.warning(
            "Authorization rejected",
            extra={
                "reason": "role_denied",
                "user_id": principal.id,
                "role": principal.role,
            },
        )
        raise ForbiddenError(NOT_AUTHORIZED_MESSAGE)
    return principal


def authorize(
    header: str | None,
    required_roles: Collection[Role] = frozenset(),
    settings: Settings | None = None,
) -> CurrentUser:
    """Authorize a request from its Authorization header value."""
    return authorize_token(extract_bearer_token(header), required_roles, settings)
