"""Request/response schemas for auth endpoints and token claims."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login. Emptiness is checked by the service (400, not 422)."""

    username: str = Field(default="", max_length=100, description="Username")
    password: str = Field(default="", max_length=128, description="Password")


class UserOut(BaseModel):
    """User profile (never includes credential material)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    display_name: str
    role: str
    external_id: str
    is_active: bool
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class LoginResponse(BaseModel):
    """JWT access token plus the authenticated user."""

    token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Opaque value; not tracked server-side")
    expires_at: datetime
    token_type: str = Field(default="bearer", description="Token type")
    user: UserOut


class RefreshTokenResponse(BaseModel):
    token: str
    refresh_token: str
    expires_at: datetime
    token_type: str = "bearer"


class TokenClaims(BaseModel):
    """Claim set carried by an access token."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sub: str
    name: str
    email: str = ""
    role: str
    user_id: str = Field(alias="UserId")
    user_name: str = Field(alias="UserName")
    iss: str
    aud: str
    iat: datetime
    exp: datetime


class CurrentUser(BaseModel):
    """Authenticated principal taken from a validated token, for dependency injection."""

    id: str
    username: str
    name: str
    email: str
    role: str

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "CurrentUser":
        return cls(
            id=claims.user_id,
            username=claims.user_name,
            name=claims.name,
            email=claims.email,
            role=claims.role,
        )


class TokenValidateRequest(BaseModel):
    token: str | None = None


class TokenValidateResponse(BaseModel):
    """Outcome of checking a token; user is set only when valid."""

    valid: bool
    user: CurrentUser | None = None
