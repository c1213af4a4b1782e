"""API v1 routes."""

from fastapi import APIRouter

from devnexus.api.v1 import (
    auth,
    dashboard,
    health,
    notifications,
    pipelines,
    projects,
    repositories,
    work_items,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
router.include_router(projects.router, prefix="/projects", tags=["projects"])
router.include_router(pipelines.router, prefix="/pipelines", tags=["pipelines"])
router.include_router(work_items.router, prefix="/workitems", tags=["workitems"])
router.include_router(repositories.router, prefix="/repositories", tags=["repositories"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
