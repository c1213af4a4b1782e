"""ORM models for pipelines and pipeline runs."""

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from devnexus.models.base import Base


class Pipeline(Base):
    """Build or release pipeline. Owns its runs: deleting a pipeline deletes them."""

    __tablename__ = "pipelines"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)
    project_name = Column(String(255), nullable=False, default="")
    type = Column(String(32), nullable=False, default="Build")
    status = Column(String(32), nullable=False, default="Idle")
    last_run_date = Column(DateTime(timezone=True), nullable=True)
    last_run_status = Column(String(32), nullable=False, default="")
    last_run_result = Column(String(32), nullable=False, default="")
    url = Column(String(1024), nullable=False, default="")

    runs = relationship(
        "PipelineRun",
        back_populates="pipeline",
        cascade="all, delete-orphan",
        order_by="PipelineRun.start_time.desc()",
    )


class PipelineRun(Base):
    """
    One execution of a pipeline.

    result is 'Succeeded', 'Failed', 'Cancelled', 'PartiallySucceeded', 'Skipped'
    or 'Unknown' while the run is still going.
    """

    __tablename__ = "pipeline_runs"

    id = Column(String(64), primary_key=True)
    pipeline_id = Column(
        String(64),
        ForeignKey("pipelines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False, default="")
    status = Column(String(32), nullable=False, default="Running")
    result = Column(String(32), nullable=False, default="Unknown", index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    finish_time = Column(DateTime(timezone=True), nullable=True)
    triggered_by = Column(String(255), nullable=False, default="")
    source_branch = Column(String(255), nullable=False, default="main")
    source_version = Column(String(255), nullable=False, default="")

    pipeline = relationship("Pipeline", back_populates="runs")
