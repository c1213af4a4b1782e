"""
Dashboard, project and pipeline statistics over already-loaded records.

Pure functions: no database access, no side effects. The store-backed service in
devnexus.services.devops loads the collections and calls these.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from devnexus.schemas.metrics import (
    DashboardMetrics,
    PipelineMetrics,
    ProjectMetrics,
    ProjectSummary,
    RecentActivity,
    RecentProject,
)

if TYPE_CHECKING:
    from devnexus.models import (
        Pipeline,
        PipelineRun,
        Project,
        Repository,
        User,
        WorkItem,
    )

ACTIVE_STATE = "Active"
CLOSED_STATE = "Closed"
RESULT_SUCCEEDED = "Succeeded"
RESULT_FAILED = "Failed"
RESULT_CANCELLED = "Cancelled"

RECENT_PROJECTS_LIMIT = 5

_ONE_MICROSECOND = timedelta(microseconds=1)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat those as UTC so arithmetic with now() works."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def success_rate(successful: int, total: int) -> float:
    """successful / total * 100, or 0.0 when there were no attempts."""
    if total <= 0:
        return 0.0
    return successful / total * 100


def runs_by_pipeline(runs: Iterable["PipelineRun"]) -> dict[str, list["PipelineRun"]]:
    """Group runs under their owning pipeline id."""
    grouped: defaultdict[str, list["PipelineRun"]] = defaultdict(list)
    for run in runs:
        grouped[run.pipeline_id].append(run)
    return grouped


def pipeline_success_rate(
    pipeline_ids: Iterable[str],
    runs: Iterable["PipelineRun"],
) -> float:
    """Success rate over every run belonging to any of the given pipelines."""
    ids = set(pipeline_ids)
    if not ids:
        return 0.0
    scoped = [r for r in runs if r.pipeline_id in ids]
    succeeded = sum(1 for r in scoped if r.result == RESULT_SUCCEEDED)
    return success_rate(succeeded, len(scoped))


def average_duration(runs: Sequence["PipelineRun"], now: datetime) -> timedelta:
    """
    Mean of (finish_time or now) - start_time, in whole microseconds.
    Unfinished runs count as still running up to now. Zero when there are no runs.
    """
    if not runs:
        return timedelta(0)
    total_us = 0
    for run in runs:
        finish = as_utc(run.finish_time) if run.finish_time is not None else now
        total_us += (finish - as_utc(run.start_time)) // _ONE_MICROSECOND
    return timedelta(microseconds=total_us / len(runs))


def compute_dashboard_metrics(
    projects: Sequence["Project"],
    pipelines: Sequence["Pipeline"],
    runs: Sequence["PipelineRun"],
    work_items: Sequence["WorkItem"],
    repositories: Sequence["Repository"],
    users: Sequence["User"],
    now: datetime | None = None,
) -> DashboardMetrics:
    """Overall counts. failed_pipeline_runs spans all runs, not one project."""
    return DashboardMetrics(
        total_projects=len(projects),
        active_projects=sum(1 for p in projects if p.state == ACTIVE_STATE),
        total_pipelines=len(pipelines),
        failed_pipeline_runs=sum(1 for r in runs if r.result == RESULT_FAILED),
        total_work_items=len(work_items),
        open_work_items=sum(1 for w in work_items if w.state == ACTIVE_STATE),
        total_repositories=len(repositories),
        active_users=sum(1 for u in users if u.is_active),
        last_updated=now or datetime.now(UTC),
    )


def compute_project_metrics(
    project: "Project",
    pipelines: Iterable["Pipeline"],
    runs: Iterable["PipelineRun"],
    work_items: Iterable["WorkItem"],
    repositories: Iterable["Repository"],
    now: datetime | None = None,
    success_rate_override: float | None = None,
) -> ProjectMetrics:
    """
    Counts scoped to one project plus the success rate of its pipelines' runs.

    Collections may contain records of other projects; they are filtered here.
    success_rate_override lets the caller supply a rate computed elsewhere (e.g. in SQL).
    """
    pid = project.id
    project_pipeline_ids = [p.id for p in pipelines if p.project_id == pid]
    project_items = [w for w in work_items if w.project_id == pid]
    if success_rate_override is None:
        rate = pipeline_success_rate(project_pipeline_ids, runs)
    else:
        rate = success_rate_override
    return ProjectMetrics(
        project_id=pid,
        project_name=project.name,
        pipeline_count=len(project_pipeline_ids),
        repository_count=sum(1 for r in repositories if r.project_id == pid),
        work_item_count=len(project_items),
        active_work_items=sum(1 for w in project_items if w.state == ACTIVE_STATE),
        completed_work_items=sum(1 for w in project_items if w.state == CLOSED_STATE),
        pipeline_success_rate=rate,
        last_activity=now or datetime.now(UTC),
    )


def compute_pipeline_metrics(
    pipelines: Sequence["Pipeline"],
    runs: Iterable["PipelineRun"],
    now: datetime | None = None,
) -> list[PipelineMetrics]:
    """One PipelineMetrics per pipeline, in the order given."""
    now = now or datetime.now(UTC)
    grouped = runs_by_pipeline(runs)
    metrics: list[PipelineMetrics] = []
    for pipeline in pipelines:
        pipeline_runs = grouped.get(pipeline.id, [])
        total = len(pipeline_runs)
        results = Counter(r.result for r in pipeline_runs)
        succeeded = results[RESULT_SUCCEEDED]
        last_run = (
            max(as_utc(r.start_time) for r in pipeline_runs) if pipeline_runs else now
        )
        metrics.append(
            PipelineMetrics(
                pipeline_id=pipeline.id,
                pipeline_name=pipeline.name,
                total_runs=total,
                successful_runs=succeeded,
                failed_runs=results[RESULT_FAILED],
                cancelled_runs=results[RESULT_CANCELLED],
                success_rate=success_rate(succeeded, total),
                average_duration=average_duration(pipeline_runs, now),
                last_run=last_run,
            )
        )
    return metrics


def _work_item_timestamp(item: "WorkItem") -> datetime:
    return as_utc(item.changed_date or item.created_date)


def merge_recent_activity(
    work_items: Iterable["WorkItem"],
    runs: Iterable["PipelineRun"],
    count: int,
    pipelines: Iterable["Pipeline"] = (),
) -> list[RecentActivity]:
    """
    Latest activity across work items and pipeline runs.

    Takes count // 2 from each feed first (work items by changed-or-created date,
    runs by start time, newest first), then merges, re-sorts newest first and
    truncates to count. A very recent item can be left out when the other feed
    holds more than half of the recent items; that is accepted for bounded cost.
    """
    per_feed = count // 2
    if per_feed <= 0:
        return []
    pipeline_by_id = {p.id: p for p in pipelines}

    recent_items = sorted(work_items, key=_work_item_timestamp, reverse=True)[:per_feed]
    recent_runs = sorted(runs, key=lambda r: as_utc(r.start_time), reverse=True)[:per_feed]

    activities: list[RecentActivity] = []
    for item in recent_items:
        activities.append(
            RecentActivity(
                id=item.id,
                type="WorkItem",
                title=item.title,
                description=f"Work item {item.state}",
                user=item.assigned_to or "",
                timestamp=_work_item_timestamp(item),
                project_id=item.project_id,
                project_name=item.project_name or "",
                status=item.state,
                url=f"#/workitems/{item.id}",
            )
        )
    for run in recent_runs:
        pipeline = pipeline_by_id.get(run.pipeline_id)
        activities.append(
            RecentActivity(
                id=run.id,
                type="PipelineRun",
                title=run.name,
                description=f"Pipeline run {run.result}",
                user=run.triggered_by or "",
                timestamp=as_utc(run.start_time),
                project_id=pipeline.project_id if pipeline else "unknown",
                project_name=(pipeline.project_name or "Unknown") if pipeline else "Unknown",
                status=run.status,
                url=f"#/pipelines/{run.id}",
            )
        )

    activities.sort(key=lambda a: a.timestamp, reverse=True)
    return activities[:count]


def compute_project_summary(projects: Sequence["Project"]) -> ProjectSummary:
    """Totals, counts by visibility and the most recently updated projects."""
    by_visibility = Counter(p.visibility for p in projects)
    recent = sorted(projects, key=lambda p: as_utc(p.last_update_time), reverse=True)
    return ProjectSummary(
        total_projects=len(projects),
        active_projects=sum(1 for p in projects if p.state == ACTIVE_STATE),
        projects_by_visibility=dict(by_visibility),
        recent_projects=[
            RecentProject(
                id=p.id,
                name=p.name,
                state=p.state,
                last_update_time=as_utc(p.last_update_time),
            )
            for p in recent[:RECENT_PROJECTS_LIMIT]
        ],
    )
