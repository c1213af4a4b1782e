"""ORM models for projects and their repositories."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from devnexus.models.base import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    url = Column(String(1024), nullable=False, default="")
    state = Column(String(32), nullable=False, default="Active", index=True)
    visibility = Column(String(32), nullable=False, default="Private")
    last_update_time = Column(DateTime(timezone=True), nullable=False)
    default_team_name = Column(String(255), nullable=False, default="")


class Repository(Base):
    """Source repository; references its project by id but is owned independently."""

    __tablename__ = "repositories"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)
    project_name = Column(String(255), nullable=False, default="")
    url = Column(String(1024), nullable=False, default="")
    default_branch = Column(String(255), nullable=False, default="main")
    type = Column(String(32), nullable=False, default="Git")
    is_fork = Column(Boolean, nullable=False, default=False)
    created_date = Column(DateTime(timezone=True), nullable=False)
    last_updated_date = Column(DateTime(timezone=True), nullable=False)
    commit_count = Column(Integer, nullable=False, default=0)
    branch_count = Column(Integer, nullable=False, default=0)
    pull_request_count = Column(Integer, nullable=False, default=0)
