"""ORM model for work items (bugs, tasks, user stories, ...)."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from devnexus.models.base import Base, JSONType


class WorkItem(Base):
    """
    Work item tracked against a project.

    state follows the board lifecycle: 'New', 'Active', 'Resolved', 'Closed', 'Removed'.
    changed_date stays NULL until the first update.
    """

    __tablename__ = "work_items"

    id = Column(String(64), primary_key=True)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(String(32), nullable=False, default="Task", index=True)
    state = Column(String(32), nullable=False, default="New", index=True)
    priority = Column(String(32), nullable=False, default="Medium")
    assigned_to = Column(String(255), nullable=False, default="")
    created_date = Column(DateTime(timezone=True), nullable=False)
    changed_date = Column(DateTime(timezone=True), nullable=True)
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)
    project_name = Column(String(255), nullable=False, default="")
    area_path = Column(String(1024), nullable=False, default="")
    iteration_path = Column(String(1024), nullable=False, default="")
    tags = Column(JSONType, nullable=False, default=list)
    custom_fields = Column(JSONType, nullable=False, default=dict)
