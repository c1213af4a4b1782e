"""Derived, per-request metrics snapshots (never persisted)."""

from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel, Field


class DashboardMetrics(BaseModel):
    total_projects: int
    active_projects: int
    total_pipelines: int
    failed_pipeline_runs: int
    total_work_items: int
    open_work_items: int
    total_repositories: int
    active_users: int
    last_updated: datetime


class ProjectMetrics(BaseModel):
    project_id: str
    project_name: str
    pipeline_count: int
    repository_count: int
    work_item_count: int
    active_work_items: int
    completed_work_items: int
    pipeline_success_rate: float = Field(ge=0, le=100, description="Percentage, not rounded")
    last_activity: datetime


class PipelineMetrics(BaseModel):
    pipeline_id: str
    pipeline_name: str
    total_runs: int
    successful_runs: int
    failed_runs: int
    cancelled_runs: int
    success_rate: float = Field(ge=0, le=100, description="Percentage, not rounded")
    average_duration: timedelta
    last_run: datetime


class RecentActivity(BaseModel):
    id: str
    type: Literal["WorkItem", "PipelineRun"]
    title: str
    description: str
    user: str
    timestamp: datetime
    project_id: str
    project_name: str
    status: str
    url: str


class RecentProject(BaseModel):
    id: str
    name: str
    state: str
    last_update_time: datetime


class ProjectSummary(BaseModel):
    total_projects: int
    active_projects: int
    projects_by_visibility: dict[str, int]
    recent_projects: list[RecentProject]
