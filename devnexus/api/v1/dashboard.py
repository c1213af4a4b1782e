"""Dashboard routes: overall metrics, recent activity, per-pipeline metrics and project summary."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from devnexus.api.v1.auth import get_current_user
from devnexus.core.database import get_db
from devnexus.schemas.auth import CurrentUser
from devnexus.schemas.common import ApiResponse
from devnexus.schemas.metrics import (
    DashboardMetrics,
    PipelineMetrics,
    ProjectSummary,
    RecentActivity,
)
from devnexus.services import devops

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/metrics", response_model=ApiResponse[DashboardMetrics])
def get_dashboard_metrics(
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[DashboardMetrics]:
    return ApiResponse.ok(
        devops.get_dashboard_metrics(db), "Dashboard metrics retrieved successfully"
    )


@router.get("/recent-activity", response_model=ApiResponse[list[RecentActivity]])
def get_recent_activity(
    db: Annotated[Session, Depends(get_db)],
    count: int = 10,
) -> ApiResponse[list[RecentActivity]]:
    """Newest work-item and pipeline-run activity. count must be between 1 and 100."""
    activities = devops.get_recent_activity(db, count)
    return ApiResponse.ok(activities, "Recent activities retrieved successfully")


@router.get("/pipeline-metrics", response_model=ApiResponse[list[PipelineMetrics]])
def get_pipeline_metrics(
    db: Annotated[Session, Depends(get_db)],
    project_id: Annotated[str | None, Query()] = None,
) -> ApiResponse[list[PipelineMetrics]]:
    return ApiResponse.ok(
        devops.get_pipeline_metrics(db, project_id), "Pipeline metrics retrieved successfully"
    )


@router.get("/project-summary", response_model=ApiResponse[ProjectSummary])
def get_project_summary(
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ProjectSummary]:
    return ApiResponse.ok(
        devops.get_project_summary(db), "Project summary retrieved successfully"
    )
