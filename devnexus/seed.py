"""
Development data: two projects, two pipelines with a few runs, two work items,
one repository and the 'developer' user.

Idempotent: nothing is inserted when proj-001 already exists. Run from project root:
  python -m devnexus.seed
"""

import logging
import sys
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devnexus.core.database import SessionLocal, init_db
from devnexus.core.roles import Role
from devnexus.core.security import hash_password
from devnexus.models import Pipeline, PipelineRun, Project, Repository, User, WorkItem

logger = logging.getLogger(__name__)

DEFAULT_TEAM_NAME = "Default Team"
DEVELOPMENT_PASSWORD = "password123"
ORG_URL = "https://dev.azure.com/organization"


def _records(now: datetime) -> list:
    projects = [
        Project(
            id="proj-001",
            name="AzureDevNexus",
            description="Azure DevOps Management Platform",
            url=f"{ORG_URL}/AzureDevNexus",
            state="Active",
            visibility="Private",
            last_update_time=now,
            default_team_name=DEFAULT_TEAM_NAME,
        ),
        Project(
            id="proj-002",
            name="Sample Project",
            description="A sample project for demonstration",
            url=f"{ORG_URL}/SampleProject",
            state="Active",
            visibility="Private",
            last_update_time=now - timedelta(days=1),
            default_team_name=DEFAULT_TEAM_NAME,
        ),
    ]
    pipelines = [
        Pipeline(
            id="pipe-001",
            name="Build Pipeline",
            project_id="proj-001",
            project_name="AzureDevNexus",
            type="Build",
            status="Idle",
            last_run_date=now - timedelta(hours=2),
            last_run_status="Completed",
            last_run_result="Succeeded",
            url=f"{ORG_URL}/AzureDevNexus/_build?definitionId=1",
        ),
        Pipeline(
            id="pipe-002",
            name="Deploy Pipeline",
            project_id="proj-001",
            project_name="AzureDevNexus",
            type="Release",
            status="Idle",
            last_run_date=now - timedelta(days=1),
            last_run_status="Completed",
            last_run_result="Succeeded",
            url=f"{ORG_URL}/AzureDevNexus/_release?definitionId=1",
        ),
    ]
    runs = [
        PipelineRun(
            id="run-001",
            pipeline_id="pipe-001",
            name="CI Build 20240101.1",
            status="Completed",
            result="Succeeded",
            start_time=now - timedelta(hours=2),
            finish_time=now - timedelta(hours=2) + timedelta(minutes=8),
            triggered_by="developer",
            source_branch="main",
            source_version="abc1234",
        ),
        PipelineRun(
            id="run-002",
            pipeline_id="pipe-001",
            name="CI Build 20240101.2",
            status="Completed",
            result="Failed",
            start_time=now - timedelta(hours=5),
            finish_time=now - timedelta(hours=5) + timedelta(minutes=3),
            triggered_by="developer",
            source_branch="feature/new-feature",
            source_version="def5678",
        ),
        PipelineRun(
            id="run-003",
            pipeline_id="pipe-002",
            name="Release 1.0",
            status="Completed",
            result="Succeeded",
            start_time=now - timedelta(days=1),
            finish_time=now - timedelta(days=1) + timedelta(minutes=15),
            triggered_by="developer",
            source_branch="main",
            source_version="abc1234",
        ),
    ]
    work_items = [
        WorkItem(
            id="wi-001",
            title="Implement Authentication System",
            description="Set up Azure AD authentication with JWT tokens",
            type="Task",
            state="Active",
            priority="High",
            assigned_to="developer@company.com",
            created_date=now - timedelta(days=5),
            project_id="proj-001",
            project_name="AzureDevNexus",
            area_path="AzureDevNexus\\Authentication",
            iteration_path="AzureDevNexus\\Sprint 1",
            tags=["authentication", "security", "azure-ad"],
            custom_fields={},
        ),
        WorkItem(
            id="wi-002",
            title="Create Dashboard UI",
            description="Design and implement the main dashboard interface",
            type="UserStory",
            state="Active",
            priority="Medium",
            assigned_to="developer@company.com",
            created_date=now - timedelta(days=3),
            project_id="proj-001",
            project_name="AzureDevNexus",
            area_path="AzureDevNexus\\UI",
            iteration_path="AzureDevNexus\\Sprint 1",
            tags=["ui", "dashboard", "blazor"],
            custom_fields={},
        ),
    ]
    repositories = [
        Repository(
            id="repo-001",
            name="AzureDevNexus",
            project_id="proj-001",
            project_name="AzureDevNexus",
            url=f"{ORG_URL}/AzureDevNexus/_git/AzureDevNexus",
            default_branch="main",
            type="Git",
            is_fork=False,
            created_date=now - timedelta(days=30),
            last_updated_date=now,
            commit_count=45,
            branch_count=3,
            pull_request_count=8,
        ),
    ]
    users = [
        User(
            id="user-001",
            username="developer",
            email="developer@company.com",
            display_name="John Developer",
            role=Role.DEVELOPER.value,
            external_id="azure-ad-id-001",
            password_hash=hash_password(DEVELOPMENT_PASSWORD),
            is_active=True,
        ),
    ]
    # Parents first so foreign keys resolve on flush.
    return [*projects, *pipelines, *runs, *work_items, *repositories, *users]


def seed(db: Session, now: datetime | None = None) -> bool:
    """Insert development data. Returns False when it is already present."""
    if db.get(Project, "proj-001") is not None:
        logger.info("Seed data already present; skipping")
        return False
    now = now or datetime.now(UTC)
    try:
        for record in _records(now):
            db.add(record)
            db.flush()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Seed data inserted")
    return True


def main() -> int:
    init_db()
    db = SessionLocal()
    try:
        seed(db)
        return 0
    except SQLAlchemyError:
        logger.exception("Seeding failed")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    sys.exit(main())
