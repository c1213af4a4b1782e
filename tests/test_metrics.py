"""Tests for the pure metrics aggregator."""

import unittest
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

from devnexus.services.metrics import (
    average_duration,
    compute_dashboard_metrics,
    compute_pipeline_metrics,
    compute_project_metrics,
    compute_project_summary,
    merge_recent_activity,
    success_rate,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def project(pid: str, state: str = "Active", visibility: str = "Private", updated=NOW):
    return SimpleNamespace(
        id=pid, name=f"Project {pid}", state=state, visibility=visibility, last_update_time=updated
    )


def pipeline(pid: str, project_id: str = "proj-001"):
    return SimpleNamespace(
        id=pid, name=f"Pipeline {pid}", project_id=project_id, project_name="AzureDevNexus"
    )


def run(rid: str, pipeline_id: str, result: str, start: datetime, finish: datetime | None):
    return SimpleNamespace(
        id=rid,
        pipeline_id=pipeline_id,
        name=f"Run {rid}",
        status="Completed" if finish else "Running",
        result=result,
        start_time=start,
        finish_time=finish,
        triggered_by="developer",
    )


def work_item(wid: str, state: str, created: datetime, changed=None, project_id="proj-001"):
    return SimpleNamespace(
        id=wid,
        title=f"Item {wid}",
        state=state,
        assigned_to="developer@company.com",
        created_date=created,
        changed_date=changed,
        project_id=project_id,
        project_name="AzureDevNexus",
    )


class TestSuccessRate(unittest.TestCase):
    def test_zero_attempts(self) -> None:
        self.assertEqual(success_rate(0, 0), 0.0)

    def test_not_rounded(self) -> None:
        self.assertAlmostEqual(success_rate(1, 3), 100 / 3)


class TestDashboardMetrics(unittest.TestCase):
    def test_counts(self) -> None:
        projects = [project("p1"), project("p2", state="WellFormed")]
        pipelines = [pipeline("pipe-1")]
        runs = [
            run("r1", "pipe-1", "Failed", NOW, NOW),
            run("r2", "pipe-other", "Failed", NOW, NOW),
            run("r3", "pipe-1", "Succeeded", NOW, NOW),
        ]
        items = [work_item("w1", "Active", NOW), work_item("w2", "Closed", NOW)]
        users = [SimpleNamespace(is_active=True), SimpleNamespace(is_active=False)]
        metrics = compute_dashboard_metrics(projects, pipelines, runs, items, [object()], users, NOW)
        self.assertEqual(metrics.total_projects, 2)
        self.assertEqual(metrics.active_projects, 1)
        self.assertEqual(metrics.total_pipelines, 1)
        self.assertEqual(metrics.failed_pipeline_runs, 2)
        self.assertEqual(metrics.total_work_items, 2)
        self.assertEqual(metrics.open_work_items, 1)
        self.assertEqual(metrics.total_repositories, 1)
        self.assertEqual(metrics.active_users, 1)
        self.assertEqual(metrics.last_updated, NOW)

    def test_idempotent_without_mutation(self) -> None:
        args = ([project("p1")], [pipeline("x")], [], [work_item("w", "Active", NOW)], [], [])
        self.assertEqual(
            compute_dashboard_metrics(*args, now=NOW), compute_dashboard_metrics(*args, now=NOW)
        )


class TestProjectMetrics(unittest.TestCase):
    def test_project_without_pipelines_has_zero_success_rate(self) -> None:
        metrics = compute_project_metrics(project("proj-002"), [pipeline("pipe-1")], [], [], [], NOW)
        self.assertEqual(metrics.pipeline_count, 0)
        self.assertEqual(metrics.pipeline_success_rate, 0.0)

    def test_scoped_counts_and_rate(self) -> None:
        pipelines = [pipeline("pipe-1"), pipeline("pipe-2"), pipeline("pipe-x", "proj-009")]
        runs = [
            run("r1", "pipe-1", "Succeeded", NOW, NOW),
            run("r2", "pipe-2", "Failed", NOW, NOW),
            run("r3", "pipe-2", "Succeeded", NOW, NOW),
            run("r4", "pipe-1", "Succeeded", NOW, NOW),
            run("r5", "pipe-x", "Failed", NOW, NOW),
        ]
        items = [
            work_item("w1", "Active", NOW),
            work_item("w2", "Closed", NOW),
            work_item("w3", "New", NOW),
            work_item("w4", "Active", NOW, project_id="proj-009"),
        ]
        repos = [SimpleNamespace(project_id="proj-001"), SimpleNamespace(project_id="proj-009")]
        metrics = compute_project_metrics(project("proj-001"), pipelines, runs, items, repos, NOW)
        self.assertEqual(metrics.pipeline_count, 2)
        self.assertEqual(metrics.repository_count, 1)
        self.assertEqual(metrics.work_item_count, 3)
        self.assertEqual(metrics.active_work_items, 1)
        self.assertEqual(metrics.completed_work_items, 1)
        self.assertEqual(metrics.pipeline_success_rate, 75.0)

    def test_override_rate(self) -> None:
        metrics = compute_project_metrics(
            project("proj-001"), [], [], [], [], NOW, success_rate_override=42.5
        )
        self.assertEqual(metrics.pipeline_success_rate, 42.5)


class TestPipelineMetrics(unittest.TestCase):
    def test_pipeline_without_runs(self) -> None:
        [metrics] = compute_pipeline_metrics([pipeline("pipe-1")], [], NOW)
        self.assertEqual(metrics.total_runs, 0)
        self.assertEqual(metrics.success_rate, 0.0)
        self.assertEqual(metrics.average_duration, timedelta(0))
        self.assertEqual(metrics.last_run, NOW)

    def test_counts_duration_and_last_run(self) -> None:
        runs = [
            run("r1", "pipe-1", "Succeeded", NOW - timedelta(minutes=30), NOW - timedelta(minutes=20)),
            run("r2", "pipe-1", "Failed", NOW - timedelta(minutes=15), NOW - timedelta(minutes=10)),
            run("r3", "pipe-1", "Cancelled", NOW - timedelta(minutes=3), None),
            run("r4", "pipe-1", "Unknown", NOW - timedelta(minutes=2), NOW - timedelta(minutes=1)),
        ]
        [metrics] = compute_pipeline_metrics([pipeline("pipe-1")], runs, NOW)
        self.assertEqual(metrics.total_runs, 4)
        self.assertEqual(metrics.successful_runs, 1)
        self.assertEqual(metrics.failed_runs, 1)
        self.assertEqual(metrics.cancelled_runs, 1)
        self.assertEqual(metrics.success_rate, 25.0)
        # (10 + 5 + 3 + 1) minutes / 4
        self.assertEqual(metrics.average_duration, timedelta(minutes=19) / 4)
        self.assertEqual(metrics.last_run, NOW - timedelta(minutes=2))

    def test_naive_timestamps_are_treated_as_utc(self) -> None:
        naive_start = (NOW - timedelta(minutes=4)).replace(tzinfo=None)
        self.assertEqual(
            average_duration([run("r", "p", "Succeeded", naive_start, None)], NOW),
            timedelta(minutes=4),
        )


class TestRecentActivity(unittest.TestCase):
    def test_three_items_one_run_gives_four_sorted(self) -> None:
        items = [
            work_item("w1", "Active", NOW - timedelta(days=3)),
            work_item("w2", "Active", NOW - timedelta(days=5), changed=NOW - timedelta(hours=1)),
            work_item("w3", "New", NOW - timedelta(days=1)),
        ]
        runs = [run("r1", "pipe-1", "Succeeded", NOW - timedelta(hours=2), None)]
        activities = merge_recent_activity(items, runs, 10, [pipeline("pipe-1")])
        self.assertEqual([a.id for a in activities], ["w2", "r1", "w3", "w1"])
        timestamps = [a.timestamp for a in activities]
        self.assertEqual(timestamps, sorted(timestamps, reverse=True))
        self.assertEqual(activities[1].type, "PipelineRun")
        self.assertEqual(activities[1].project_id, "proj-001")
        self.assertEqual(activities[0].type, "WorkItem")

    def test_each_feed_limited_to_half(self) -> None:
        items = [work_item(f"w{i}", "Active", NOW - timedelta(minutes=i)) for i in range(5)]
        runs = [run(f"r{i}", "pipe-1", "Failed", NOW - timedelta(days=i + 1), None) for i in range(5)]
        activities = merge_recent_activity(items, runs, 4)
        self.assertEqual([a.id for a in activities], ["w0", "w1", "r0", "r1"])
        self.assertEqual(activities[2].project_id, "unknown")

    def test_count_one_yields_nothing(self) -> None:
        self.assertEqual(merge_recent_activity([work_item("w", "Active", NOW)], [], 1), [])


class TestProjectSummary(unittest.TestCase):
    def test_summary(self) -> None:
        projects = [
            project(f"p{i}", visibility="Public" if i % 2 else "Private", updated=NOW - timedelta(days=i))
            for i in range(7)
        ]
        summary = compute_project_summary(projects)
        self.assertEqual(summary.total_projects, 7)
        self.assertEqual(summary.active_projects, 7)
        self.assertEqual(summary.projects_by_visibility, {"Private": 4, "Public": 3})
        self.assertEqual([p.id for p in summary.recent_projects], ["p0", "p1", "p2", "p3", "p4"])
