"""Notification message variants pushed to hub subscribers. Immutable once built."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class NotificationType(str, Enum):
    INFO = "Info"
    SUCCESS = "Success"
    WARNING = "Warning"
    ERROR = "Error"
    PIPELINE = "Pipeline"
    WORK_ITEM = "WorkItem"
    PROJECT = "Project"
    SYSTEM = "System"


class NotificationPriority(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    CRITICAL = "Critical"


class ProjectUpdateType(str, Enum):
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"
    MEMBER_ADDED = "MemberAdded"
    MEMBER_REMOVED = "MemberRemoved"
    PIPELINE_ADDED = "PipelineAdded"
    PIPELINE_REMOVED = "PipelineRemoved"
    WORK_ITEM_ADDED = "WorkItemAdded"
    WORK_ITEM_UPDATED = "WorkItemUpdated"
    WORK_ITEM_DELETED = "WorkItemDeleted"


class WorkItemUpdateType(str, Enum):
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"
    ASSIGNED = "Assigned"
    UNASSIGNED = "Unassigned"
    STATUS_CHANGED = "StatusChanged"
    PRIORITY_CHANGED = "PriorityChanged"
    COMMENT_ADDED = "CommentAdded"
    ATTACHMENT_ADDED = "AttachmentAdded"


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)


class UserNotification(_Message):
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    priority: NotificationPriority = NotificationPriority.NORMAL
    user_id: str | None = None
    project_id: str | None = None
    pipeline_id: str | None = None
    work_item_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    is_read: bool = False
    action_url: str | None = None


class ProjectUpdateMessage(_Message):
    project_id: str
    message: str
    type: ProjectUpdateType = ProjectUpdateType.UPDATED
    timestamp: datetime = Field(default_factory=_utcnow)
    user_id: str | None = None
    user_name: str | None = None


class PipelineUpdateMessage(_Message):
    pipeline_id: str
    pipeline_name: str = ""
    status: str
    result: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    user_id: str | None = None
    user_name: str | None = None
    build_number: str | None = None


class WorkItemUpdateMessage(_Message):
    work_item_id: str
    work_item_title: str = ""
    message: str
    type: WorkItemUpdateType = WorkItemUpdateType.UPDATED
    timestamp: datetime = Field(default_factory=_utcnow)
    user_id: str | None = None
    user_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None


class GlobalNotificationMessage(_Message):
    title: str
    message: str
    type: NotificationType = NotificationType.SYSTEM
    priority: NotificationPriority = NotificationPriority.NORMAL
    timestamp: datetime = Field(default_factory=_utcnow)
    action_url: str | None = None
    requires_acknowledgment: bool = False


class UserNotificationRequest(BaseModel):
    """Body for POST /notifications/users/{user_id}."""

    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=4000)
    type: NotificationType = NotificationType.INFO
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: str | None = None


class GlobalNotificationRequest(BaseModel):
    """Body for POST /notifications/global."""

    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=4000)
    type: NotificationType = NotificationType.SYSTEM
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: str | None = None
    requires_acknowledgment: bool = False
