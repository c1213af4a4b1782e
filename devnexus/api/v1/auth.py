"""JWT login, refresh and profile routes plus the auth dependencies (get_current_user, require_roles)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from devnexus.core.config import get_settings
from devnexus.core.database import get_db
from devnexus.core.errors import (
    NotFoundError,
    RateLimitedError,
    UnauthenticatedError,
    ValidationError,
)
from devnexus.core.rate_limit import login_limiter
from devnexus.core.roles import ADMIN_ONLY, Role
from devnexus.core.security import decode_access_token
from devnexus.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RefreshTokenResponse,
    TokenValidateRequest,
    TokenValidateResponse,
    UserOut,
)
from devnexus.schemas.common import ApiResponse
from devnexus.services import auth as auth_service
from devnexus.services.authorization import authorize

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_FAILED_MESSAGE = "Invalid username or password"


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def login_rate_limit(request: Request) -> None:
    """Dependency: count one login attempt for the caller's address; 429 once over the limit."""
    settings = get_settings()
    client = _client_address(request)
    allowed, retry_after = login_limiter.hit(
        f"login:{client}",
        limit=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
        window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SEC,
    )
    if not allowed:
        logger.warning("Login rate limit exceeded", extra={"client": client})
        raise RateLimitedError("Too many login attempts. Try again later.", retry_after)


def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Dependency: require a valid Bearer JWT. Any authenticated role passes."""
    principal = authorize(authorization)
    request.state.user_id = principal.id
    request.state.user_name = principal.username
    return principal


def require_roles(*roles: Role) -> Callable[..., CurrentUser]:
    """Dependency factory: require a valid Bearer JWT whose role is one of roles (403 otherwise)."""
    required = frozenset(roles)

    def dependency(
        request: Request,
        authorization: Annotated[str | None, Header()] = None,
    ) -> CurrentUser:
        principal = authorize(authorization, required)
        request.state.user_id = principal.id
        request.state.user_name = principal.username
        return principal

    return dependency


require_admin = require_roles(*ADMIN_ONLY)


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    dependencies=[Depends(login_rate_limit)],
)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[LoginResponse]:
    """
    Authenticate with username and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = auth_service.authenticate(db, body.username, body.password)
    if result is None:
        raise UnauthenticatedError(LOGIN_FAILED_MESSAGE)
    return ApiResponse.ok(result, "Login successful")


@router.post("/logout", response_model=ApiResponse[bool])
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[bool]:
    """Tokens are stateless; the client discards its copy."""
    logger.info("User logged out", extra={"user_id": current_user.id})
    return ApiResponse.ok(True, "Logout successful")


@router.get("/profile", response_model=ApiResponse[UserOut])
def get_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserOut]:
    user = auth_service.get_user_by_id(db, current_user.id)
    if user is None:
        raise NotFoundError("User not found")
    return ApiResponse.ok(UserOut.model_validate(user), "Profile retrieved successfully")


@router.post("/refresh", response_model=ApiResponse[RefreshTokenResponse])
def refresh(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[RefreshTokenResponse]:
    result = auth_service.refresh_token(db, current_user)
    return ApiResponse.ok(result, "Token refreshed successfully")


@router.post("/validate", response_model=ApiResponse[TokenValidateResponse])
def validate_token(body: TokenValidateRequest) -> ApiResponse[TokenValidateResponse]:
    """Public check of an access token. An invalid or expired token is valid=false, not an error."""
    token = (body.token or "").strip()
    if not token:
        raise ValidationError("Token is required")
    claims = decode_access_token(token)
    if claims is None:
        return ApiResponse.ok(TokenValidateResponse(valid=False), "Token is invalid")
    result = TokenValidateResponse(valid=True, user=CurrentUser.from_claims(claims))
    return ApiResponse.ok(result, "Token is valid")


@router.get("/users", response_model=ApiResponse[list[UserOut]])
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[UserOut]]:
    """List all users (admin only)."""
    users = auth_service.list_users(db)
    return ApiResponse.ok([UserOut.model_validate(u) for u in users])
