"""Repository routes. Branches and commits are placeholder data."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from devnexus.api.v1.auth import get_current_user
from devnexus.core.database import get_db
from devnexus.schemas.common import ApiResponse
from devnexus.schemas.devops import RepositoryOut
from devnexus.services import devops

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=ApiResponse[list[RepositoryOut]])
def list_repositories(
    db: Annotated[Session, Depends(get_db)],
    project_id: Annotated[str | None, Query()] = None,
) -> ApiResponse[list[RepositoryOut]]:
    repositories = devops.list_repositories(db, project_id)
    return ApiResponse.ok(
        [RepositoryOut.model_validate(r) for r in repositories],
        "Repositories retrieved successfully",
    )


@router.get("/{repository_id}", response_model=ApiResponse[RepositoryOut])
def get_repository(
    repository_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[RepositoryOut]:
    repository = devops.get_repository(db, repository_id)
    return ApiResponse.ok(
        RepositoryOut.model_validate(repository), "Repository retrieved successfully"
    )


@router.get("/{repository_id}/branches", response_model=ApiResponse[list[str]])
def list_branches(
    repository_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[str]]:
    return ApiResponse.ok(
        devops.list_branches(db, repository_id), "Branches retrieved successfully"
    )


@router.get("/{repository_id}/commits", response_model=ApiResponse[list[str]])
def list_commits(
    repository_id: str,
    db: Annotated[Session, Depends(get_db)],
    branch: str = "main",
) -> ApiResponse[list[str]]:
    return ApiResponse.ok(
        devops.list_commits(db, repository_id, branch), "Commits retrieved successfully"
    )
