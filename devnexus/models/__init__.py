"""SQLAlchemy ORM models."""

from devnexus.models.base import Base
from devnexus.models.pipeline import Pipeline, PipelineRun
from devnexus.models.project import Project, Repository
from devnexus.models.user import User
from devnexus.models.work_item import WorkItem

__all__ = [
    "Base",
    "Pipeline",
    "PipelineRun",
    "Project",
    "Repository",
    "User",
    "WorkItem",
]
