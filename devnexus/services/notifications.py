"""
Routes notification messages to subscriber groups over a pluggable transport.

Delivery is best effort: every dispatch failure is logged and swallowed, so a broken
hub never fails the request that produced the notification.
"""

import logging
from typing import Any, Protocol

from pydantic import BaseModel

from devnexus.schemas.notifications import (
    GlobalNotificationMessage,
    PipelineUpdateMessage,
    ProjectUpdateMessage,
    UserNotification,
    WorkItemUpdateMessage,
    WorkItemUpdateType,
)

logger = logging.getLogger(__name__)

USER_GROUP_PREFIX = "User_"
PROJECT_GROUP_PREFIX = "Project_"
PIPELINE_GROUP_PREFIX = "Pipeline_"

EVENT_USER_NOTIFICATION = "ReceiveNotification"
EVENT_PROJECT_UPDATE = "ReceiveProjectUpdate"
EVENT_PIPELINE_UPDATE = "ReceivePipelineUpdate"
EVENT_WORK_ITEM_UPDATE = "ReceiveWorkItemUpdate"
EVENT_GLOBAL_NOTIFICATION = "ReceiveGlobalNotification"


def user_group(user_id: str) -> str:
    return f"{USER_GROUP_PREFIX}{user_id}"


def project_group(project_id: str) -> str:
    return f"{PROJECT_GROUP_PREFIX}{project_id}"


def pipeline_group(pipeline_id: str) -> str:
    return f"{PIPELINE_GROUP_PREFIX}{pipeline_id}"


class NotificationTransport(Protocol):
    """Delivers one event to a named group or to every connected subscriber."""

    async def send_to_group(
        self, group: str, event: str, target: str, payload: dict[str, Any]
    ) -> None: ...

    async def send_to_all(self, event: str, target: str, payload: dict[str, Any]) -> None: ...


def work_item_update_text(
    update_type: WorkItemUpdateType,
    old_value: str | None = None,
    new_value: str | None = None,
) -> str:
    """Human-readable summary of a work item change."""
    match update_type:
        case WorkItemUpdateType.CREATED:
            return "Work item created"
        case WorkItemUpdateType.UPDATED:
            return "Work item updated"
        case WorkItemUpdateType.DELETED:
            return "Work item deleted"
        case WorkItemUpdateType.ASSIGNED:
            return f"Work item assigned to {new_value}"
        case WorkItemUpdateType.UNASSIGNED:
            return "Work item unassigned"
        case WorkItemUpdateType.STATUS_CHANGED:
            return f"Status changed from {old_value} to {new_value}"
        case WorkItemUpdateType.PRIORITY_CHANGED:
            return f"Priority changed from {old_value} to {new_value}"
        case WorkItemUpdateType.COMMENT_ADDED:
            return "Comment added"
        case WorkItemUpdateType.ATTACHMENT_ADDED:
            return "Attachment added"
    return "Work item updated"


class NotificationDispatcher:
    """Maps each message kind to its group and event name and hands it to the transport."""

    def __init__(self, transport: NotificationTransport) -> None:
        self._transport = transport

    async def _send_group(self, group: str, event: str, message: BaseModel) -> None:
        try:
            await self._transport.send_to_group(
                group, event, event, message.model_dump(mode="json")
            )
        except Exception:
            logger.exception(
                "Notification dispatch failed", extra={"group": group, "event": event}
            )
            return
        logger.debug("Notification sent", extra={"group": group, "event": event})

    async def _send_all(self, event: str, message: BaseModel) -> None:
        try:
            await self._transport.send_to_all(event, event, message.model_dump(mode="json"))
        except Exception:
            logger.exception("Notification broadcast failed", extra={"event": event})
            return
        logger.debug("Notification broadcast", extra={"event": event})

    async def send_user_notification(self, user_id: str, notification: UserNotification) -> None:
        await self._send_group(user_group(user_id), EVENT_USER_NOTIFICATION, notification)

    async def send_project_update(self, project_id: str, update: ProjectUpdateMessage) -> None:
        await self._send_group(project_group(project_id), EVENT_PROJECT_UPDATE, update)

    async def send_pipeline_update(self, pipeline_id: str, update: PipelineUpdateMessage) -> None:
        await self._send_group(pipeline_group(pipeline_id), EVENT_PIPELINE_UPDATE, update)

    async def send_work_item_update(
        self, work_item_id: str, update: WorkItemUpdateMessage
    ) -> None:
        # Work items have no group of their own; every subscriber gets them.
        await self._send_all(EVENT_WORK_ITEM_UPDATE, update)

    async def send_global_notification(self, notification: GlobalNotificationMessage) -> None:
        await self._send_all(EVENT_GLOBAL_NOTIFICATION, notification)

    async def send_pipeline_status_update(
        self,
        pipeline_id: str,
        status: str,
        result: str | None = None,
        build_number: str | None = None,
        pipeline_name: str = "",
        user_id: str | None = None,
        user_name: str | None = None,
    ) -> None:
        update = PipelineUpdateMessage(
            pipeline_id=pipeline_id,
            pipeline_name=pipeline_name,
            status=status,
            result=result,
            build_number=build_number,
            user_id=user_id,
            user_name=user_name,
        )
        await self.send_pipeline_update(pipeline_id, update)

    async def send_work_item_status_update(
        self,
        work_item_id: str,
        title: str,
        update_type: WorkItemUpdateType,
        old_value: str | None = None,
        new_value: str | None = None,
        user_id: str | None = None,
        user_name: str | None = None,
    ) -> None:
        update = WorkItemUpdateMessage(
            work_item_id=work_item_id,
            work_item_title=title,
            message=work_item_update_text(update_type, old_value, new_value),
            type=update_type,
            old_value=old_value,
            new_value=new_value,
            user_id=user_id,
            user_name=user_name,
        )
        await self.send_work_item_update(work_item_id, update)
