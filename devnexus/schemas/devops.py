"""Schemas for projects, pipelines, runs, work items and repositories."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    url: str
    state: str
    visibility: str
    last_update_time: datetime
    default_team_name: str


class RepositoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    project_id: str
    project_name: str
    url: str
    default_branch: str
    type: str
    is_fork: bool
    created_date: datetime
    last_updated_date: datetime
    commit_count: int
    branch_count: int
    pull_request_count: int


class PipelineRunOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    pipeline_id: str
    name: str
    status: str
    result: str
    start_time: datetime
    finish_time: datetime | None = None
    triggered_by: str
    source_branch: str
    source_version: str


class PipelineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    project_id: str
    project_name: str
    type: str
    status: str
    last_run_date: datetime | None = None
    last_run_status: str
    last_run_result: str
    url: str
    runs: list[PipelineRunOut] = Field(default_factory=list)


class TriggerPipelineRequest(BaseModel):
    """Run parameters; 'sourceBranch' selects the branch (default main)."""

    parameters: dict[str, str] = Field(default_factory=dict)


class WorkItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    type: str
    state: str
    priority: str
    assigned_to: str
    created_date: datetime
    changed_date: datetime | None = None
    project_id: str
    project_name: str
    area_path: str
    iteration_path: str
    tags: list[str] = Field(default_factory=list)
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class WorkItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=512)
    description: str = ""
    type: str = "Task"
    state: str = "New"
    priority: str = "Medium"
    assigned_to: str = ""
    project_id: str = Field(..., min_length=1, max_length=64)
    area_path: str = ""
    iteration_path: str = ""
    tags: list[str] = Field(default_factory=list)
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class WorkItemUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=512)
    description: str | None = None
    type: str | None = None
    state: str | None = None
    priority: str | None = None
    assigned_to: str | None = None
    tags: list[str] | None = None
    custom_fields: dict[str, Any] | None = None
