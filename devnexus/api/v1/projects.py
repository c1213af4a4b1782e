"""Project routes and per-project views of pipelines, work items, repositories and metrics."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from devnexus.api.v1.auth import get_current_user
from devnexus.core.database import get_db
from devnexus.schemas.common import ApiResponse
from devnexus.schemas.devops import PipelineOut, ProjectOut, RepositoryOut, WorkItemOut
from devnexus.schemas.metrics import ProjectMetrics
from devnexus.services import devops

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=ApiResponse[list[ProjectOut]])
def list_projects(db: Annotated[Session, Depends(get_db)]) -> ApiResponse[list[ProjectOut]]:
    projects = devops.list_projects(db)
    return ApiResponse.ok(
        [ProjectOut.model_validate(p) for p in projects], "Projects retrieved successfully"
    )


@router.get("/{project_id}", response_model=ApiResponse[ProjectOut])
def get_project(
    project_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ProjectOut]:
    project = devops.get_project(db, project_id)
    return ApiResponse.ok(ProjectOut.model_validate(project), "Project retrieved successfully")


@router.get("/{project_id}/metrics", response_model=ApiResponse[ProjectMetrics])
def get_project_metrics(
    project_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ProjectMetrics]:
    return ApiResponse.ok(
        devops.get_project_metrics(db, project_id), "Project metrics retrieved successfully"
    )


@router.get("/{project_id}/pipelines", response_model=ApiResponse[list[PipelineOut]])
def get_project_pipelines(
    project_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[PipelineOut]]:
    devops.get_project(db, project_id)
    pipelines = devops.list_pipelines(db, project_id)
    return ApiResponse.ok(
        [PipelineOut.model_validate(p) for p in pipelines], "Pipelines retrieved successfully"
    )


@router.get("/{project_id}/workitems", response_model=ApiResponse[list[WorkItemOut]])
def get_project_work_items(
    project_id: str,
    db: Annotated[Session, Depends(get_db)],
    type: Annotated[str | None, Query()] = None,
) -> ApiResponse[list[WorkItemOut]]:
    devops.get_project(db, project_id)
    items = devops.list_work_items(db, project_id, type)
    return ApiResponse.ok(
        [WorkItemOut.model_validate(w) for w in items], "Work items retrieved successfully"
    )


@router.get("/{project_id}/repositories", response_model=ApiResponse[list[RepositoryOut]])
def get_project_repositories(
    project_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[RepositoryOut]]:
    devops.get_project(db, project_id)
    repositories = devops.list_repositories(db, project_id)
    return ApiResponse.ok(
        [RepositoryOut.model_validate(r) for r in repositories],
        "Repositories retrieved successfully",
    )
