"""Pydantic request/response schemas."""

from devnexus.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RefreshTokenResponse,
    TokenClaims,
    TokenValidateRequest,
    TokenValidateResponse,
    UserOut,
)
from devnexus.schemas.common import ApiResponse
from devnexus.schemas.health import HealthResponse
from devnexus.schemas.metrics import (
    DashboardMetrics,
    PipelineMetrics,
    ProjectMetrics,
    ProjectSummary,
    RecentActivity,
)

__all__ = [
    "ApiResponse",
    "CurrentUser",
    "DashboardMetrics",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "PipelineMetrics",
    "ProjectMetrics",
    "ProjectSummary",
    "RecentActivity",
    "RefreshTokenResponse",
    "TokenClaims",
    "TokenValidateRequest",
    "TokenValidateResponse",
    "UserOut",
]
