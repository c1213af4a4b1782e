"""
Local (database) data source for projects, pipelines, work items and repositories.

Every store failure is raised as TransientStoreError with the driver message attached;
nothing here retries. Metrics functions load the needed rows and hand them to the
pure aggregator in devnexus.services.metrics. Reads span several tables without a
snapshot, so metrics are only weakly consistent under concurrent writes.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devnexus.core.errors import NotFoundError, TransientStoreError, ValidationError
from devnexus.models import Pipeline, PipelineRun, Project, Repository, User, WorkItem
from devnexus.schemas.devops import WorkItemCreate, WorkItemUpdate
from devnexus.schemas.metrics import (
    DashboardMetrics,
    PipelineMetrics,
    ProjectMetrics,
    ProjectSummary,
    RecentActivity,
)
from devnexus.services.metrics import (
    RESULT_SUCCEEDED,
    compute_dashboard_metrics,
    compute_pipeline_metrics,
    compute_project_metrics,
    compute_project_summary,
    merge_recent_activity,
    success_rate,
)

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_MIN = 1
RECENT_ACTIVITY_MAX = 100

RUN_STATUS_RUNNING = "Running"
RUN_RESULT_UNKNOWN = "Unknown"
DEFAULT_SOURCE_BRANCH = "main"

# No remote source control; commits are placeholder history.
_SAMPLE_COMMITS = (
    "abc1234 - Initial commit",
    "def5678 - Add authentication system",
    "ghi9012 - Implement dashboard UI",
    "jkl3456 - Add pipeline monitoring",
    "mno7890 - Update documentation",
)


@contextmanager
def _store_errors(action: str, db: Session | None = None) -> Iterator[None]:
    """Translate SQLAlchemy failures into TransientStoreError; roll back when writing."""
    try:
        yield
    except SQLAlchemyError as e:
        if db is not None:
            db.rollback()
        logger.error("Database error: failed to %s", action, exc_info=True)
        raise TransientStoreError(f"Failed to {action}", errors=[str(e)], cause=e) from e


def _utcnow() -> datetime:
    return datetime.now(UTC)


# Projects


def list_projects(db: Session) -> list[Project]:
    with _store_errors("retrieve projects"):
        return db.query(Project).order_by(Project.id).all()


def get_project(db: Session, project_id: str) -> Project:
    with _store_errors("retrieve project"):
        project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


def get_project_summary(db: Session) -> ProjectSummary:
    return compute_project_summary(list_projects(db))


# Pipelines and runs


def list_pipelines(db: Session, project_id: str | None = None) -> list[Pipeline]:
    with _store_errors("retrieve pipelines"):
        query = db.query(Pipeline)
        if project_id:
            query = query.filter(Pipeline.project_id == project_id)
        return query.order_by(Pipeline.id).all()


def get_pipeline(db: Session, pipeline_id: str) -> Pipeline:
    with _store_errors("retrieve pipeline"):
        pipeline = db.get(Pipeline, pipeline_id)
    if pipeline is None:
        raise NotFoundError("Pipeline not found")
    return pipeline


def list_pipeline_runs(db: Session, pipeline_id: str) -> list[PipelineRun]:
    get_pipeline(db, pipeline_id)
    with _store_errors("retrieve pipeline runs"):
        return (
            db.query(PipelineRun)
            .filter(PipelineRun.pipeline_id == pipeline_id)
            .order_by(PipelineRun.start_time.desc())
            .all()
        )


def get_pipeline_run(db: Session, pipeline_id: str, run_id: str) -> PipelineRun:
    with _store_errors("retrieve pipeline run"):
        run = (
            db.query(PipelineRun)
            .filter(PipelineRun.id == run_id, PipelineRun.pipeline_id == pipeline_id)
            .first()
        )
    if run is None:
        raise NotFoundError("Pipeline run not found")
    return run


def trigger_pipeline_run(
    db: Session,
    pipeline_id: str,
    parameters: dict[str, str] | None = None,
    triggered_by: str = "Local User",
) -> PipelineRun:
    """
    Start a run of the pipeline (local simulation): status Running, result Unknown.

    parameters["sourceBranch"] selects the branch. Raises NotFoundError for an unknown pipeline.
    """
    pipeline = get_pipeline(db, pipeline_id)
    params = parameters or {}
    now = _utcnow()
    run = PipelineRun(
        id=f"run-{uuid4().hex}",
        pipeline_id=pipeline.id,
        name=f"Manual Run - {now:%Y-%m-%d %H:%M}",
        status=RUN_STATUS_RUNNING,
        result=RUN_RESULT_UNKNOWN,
        start_time=now,
        triggered_by=triggered_by,
        source_branch=params.get("sourceBranch") or DEFAULT_SOURCE_BRANCH,
        source_version="local",
    )
    with _store_errors("trigger pipeline", db):
        db.add(run)
        pipeline.last_run_date = now
        pipeline.last_run_status = RUN_STATUS_RUNNING
        pipeline.last_run_result = RUN_RESULT_UNKNOWN
        db.commit()
        db.refresh(run)
    logger.info(
        "Pipeline run triggered",
        extra={"pipeline_id": pipeline.id, "run_id": run.id, "triggered_by": triggered_by},
    )
    return run


# Work items


def list_work_items(
    db: Session,
    project_id: str | None = None,
    type: str | None = None,
) -> list[WorkItem]:
    with _store_errors("retrieve work items"):
        query = db.query(WorkItem)
        if project_id:
            query = query.filter(WorkItem.project_id == project_id)
        if type:
            query = query.filter(WorkItem.type == type)
        return query.order_by(WorkItem.id).all()


def get_work_item(db: Session, work_item_id: str) -> WorkItem:
    with _store_errors("retrieve work item"):
        item = db.get(WorkItem, work_item_id)
    if item is None:
        raise NotFoundError("Work item not found")
    return item


def create_work_item(db: Session, data: WorkItemCreate) -> WorkItem:
    """Create a work item under an existing project; id and created_date are assigned here."""
    if not data.title.strip():
        raise ValidationError("Title is required")
    project = get_project(db, data.project_id)
    item = WorkItem(
        id=f"wi-{uuid4().hex}",
        title=data.title.strip(),
        description=data.description,
        type=data.type,
        state=data.state,
        priority=data.priority,
        assigned_to=data.assigned_to,
        created_date=_utcnow(),
        project_id=project.id,
        project_name=project.name,
        area_path=data.area_path,
        iteration_path=data.iteration_path,
        tags=list(data.tags),
        custom_fields=dict(data.custom_fields),
    )
    with _store_errors("create work item", db):
        db.add(item)
        db.commit()
        db.refresh(item)
    return item


def update_work_item(
    db: Session,
    work_item_id: str,
    data: WorkItemUpdate,
) -> tuple[WorkItem, str]:
    """Apply the fields present in data and stamp changed_date. Returns (item, previous state)."""
    changes = data.model_dump(exclude_unset=True)
    if changes.get("title") is not None:
        title = changes["title"].strip()
        if not title:
            raise ValidationError("Title is required")
        changes["title"] = title
    item = get_work_item(db, work_item_id)
    previous_state = item.state
    for field, value in changes.items():
        if value is None:
            continue
        setattr(item, field, value)
    item.changed_date = _utcnow()
    with _store_errors("update work item", db):
        db.commit()
        db.refresh(item)
    return item, previous_state


def delete_work_item(db: Session, work_item_id: str) -> str:
    """Delete the work item and return its title."""
    item = get_work_item(db, work_item_id)
    title = item.title
    with _store_errors("delete work item", db):
        db.delete(item)
        db.commit()
    return title


# Repositories


def list_repositories(db: Session, project_id: str | None = None) -> list[Repository]:
    with _store_errors("retrieve repositories"):
        query = db.query(Repository)
        if project_id:
            query = query.filter(Repository.project_id == project_id)
        return query.order_by(Repository.id).all()


def get_repository(db: Session, repository_id: str) -> Repository:
    with _store_errors("retrieve repository"):
        repository = db.get(Repository, repository_id)
    if repository is None:
        raise NotFoundError("Repository not found")
    return repository


def list_branches(db: Session, repository_id: str) -> list[str]:
    repository = get_repository(db, repository_id)
    branches = [repository.default_branch, "develop", "feature/new-feature"]
    return list(dict.fromkeys(branches))


def list_commits(db: Session, repository_id: str, branch: str = DEFAULT_SOURCE_BRANCH) -> list[str]:
    get_repository(db, repository_id)
    return list(_SAMPLE_COMMITS)


# Metrics


def get_dashboard_metrics(db: Session) -> DashboardMetrics:
    with _store_errors("retrieve dashboard metrics"):
        projects = db.query(Project).all()
        pipelines = db.query(Pipeline).all()
        runs = db.query(PipelineRun).all()
        work_items = db.query(WorkItem).all()
        repositories = db.query(Repository).all()
        users = db.query(User).all()
    return compute_dashboard_metrics(
        projects, pipelines, runs, work_items, repositories, users
    )


def calculate_pipeline_success_rate(db: Session, project_id: str) -> float:
    """
    Success rate over all runs of the project's pipelines.

    Display-only: any store error is logged and yields 0.
    """
    try:
        pipeline_ids = [
            row[0]
            for row in db.query(Pipeline.id).filter(Pipeline.project_id == project_id).all()
        ]
        if not pipeline_ids:
            return 0.0
        runs_query = db.query(func.count(PipelineRun.id)).filter(
            PipelineRun.pipeline_id.in_(pipeline_ids)
        )
        total = runs_query.scalar() or 0
        if total == 0:
            return 0.0
        succeeded = (
            runs_query.filter(PipelineRun.result == RESULT_SUCCEEDED).scalar() or 0
        )
        return success_rate(succeeded, total)
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "Pipeline success rate unavailable; reporting 0",
            extra={"project_id": project_id},
            exc_info=True,
        )
        return 0.0


def get_project_metrics(db: Session, project_id: str) -> ProjectMetrics:
    project = get_project(db, project_id)
    with _store_errors("retrieve project metrics"):
        pipelines = db.query(Pipeline).filter(Pipeline.project_id == project_id).all()
        work_items = db.query(WorkItem).filter(WorkItem.project_id == project_id).all()
        repositories = (
            db.query(Repository).filter(Repository.project_id == project_id).all()
        )
    rate = calculate_pipeline_success_rate(db, project_id)
    return compute_project_metrics(
        project,
        pipelines,
        (),
        work_items,
        repositories,
        success_rate_override=rate,
    )


def get_pipeline_metrics(db: Session, project_id: str | None = None) -> list[PipelineMetrics]:
    pipelines = list_pipelines(db, project_id)
    if not pipelines:
        return []
    with _store_errors("retrieve pipeline metrics"):
        runs = (
            db.query(PipelineRun)
            .filter(PipelineRun.pipeline_id.in_([p.id for p in pipelines]))
            .all()
        )
    return compute_pipeline_metrics(pipelines, runs)


def get_recent_activity(db: Session, count: int = 10) -> list[RecentActivity]:
    """Newest work-item and pipeline-run activity; count must be 1..100."""
    if count < RECENT_ACTIVITY_MIN or count > RECENT_ACTIVITY_MAX:
        raise ValidationError(
            f"Count must be between {RECENT_ACTIVITY_MIN} and {RECENT_ACTIVITY_MAX}"
        )
    per_feed = count // 2
    if per_feed == 0:
        return []
    with _store_errors("retrieve recent activities"):
        work_items = (
            db.query(WorkItem)
            .order_by(func.coalesce(WorkItem.changed_date, WorkItem.created_date).desc())
            .limit(per_feed)
            .all()
        )
        runs = (
            db.query(PipelineRun)
            .order_by(PipelineRun.start_time.desc())
            .limit(per_feed)
            .all()
        )
        pipeline_ids = {r.pipeline_id for r in runs}
        pipelines = (
            db.query(Pipeline).filter(Pipeline.id.in_(pipeline_ids)).all()
            if pipeline_ids
            else []
        )
    return merge_recent_activity(work_items, runs, count, pipelines)
