"""Notification hub (WebSocket) and admin routes that push notifications."""

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from devnexus.api.v1.auth import require_admin
from devnexus.core.security import decode_access_token
from devnexus.schemas.auth import CurrentUser
from devnexus.schemas.common import ApiResponse
from devnexus.schemas.notifications import (
    GlobalNotificationMessage,
    GlobalNotificationRequest,
    UserNotification,
    UserNotificationRequest,
)
from devnexus.services.hub import get_dispatcher, manager
from devnexus.services.notifications import (
    NotificationDispatcher,
    pipeline_group,
    project_group,
    user_group,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Close code sent when the hub token is missing or invalid.
WS_AUTH_FAILED = 4001

_GROUP_FRAMES = {
    "join_project": (project_group, True),
    "leave_project": (project_group, False),
    "join_pipeline": (pipeline_group, True),
    "leave_pipeline": (pipeline_group, False),
}


async def _handle_frame(websocket: WebSocket, connection_id: str, frame: Any) -> None:
    if not isinstance(frame, dict):
        await websocket.send_json({"type": "error", "message": "Frame must be a JSON object"})
        return
    kind = frame.get("type")
    if kind == "ping":
        await websocket.send_json({"type": "pong"})
        return
    if kind in _GROUP_FRAMES:
        target_id = frame.get("id")
        if not isinstance(target_id, str) or not target_id:
            await websocket.send_json({"type": "error", "message": "Missing id"})
            return
        group_for, joining = _GROUP_FRAMES[kind]
        group = group_for(target_id)
        if joining:
            manager.join(connection_id, group)
        else:
            manager.leave(connection_id, group)
        await websocket.send_json({"type": kind, "group": group})
        return
    await websocket.send_json({"type": "error", "message": f"Unknown frame type: {kind}"})


@router.websocket("/hub")
async def notification_hub(
    websocket: WebSocket,
    token: Annotated[str | None, Query()] = None,
) -> None:
    """
    Subscriber transport. Authenticate with ?token=<access token>; the connection joins
    User_<id> automatically and can join or leave project and pipeline groups.
    """
    claims = decode_access_token(token) if token else None
    if claims is None:
        logger.warning("Hub connection rejected", extra={"reason": "invalid_token"})
        await websocket.close(code=WS_AUTH_FAILED, reason="Authentication failed")
        return

    connection_id = await manager.connect(websocket)
    manager.join(connection_id, user_group(claims.user_id))
    await websocket.send_json({"type": "connected", "user_id": claims.user_id})
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                await websocket.send_json(
                    {"type": "error", "message": "Binary frames are not supported"}
                )
                continue
            try:
                frame = json.loads(raw)
            except ValueError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            await _handle_frame(websocket, connection_id, frame)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(connection_id)


@router.post("/global", response_model=ApiResponse[GlobalNotificationMessage])
async def send_global_notification(
    body: GlobalNotificationRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[GlobalNotificationMessage]:
    notification = GlobalNotificationMessage(**body.model_dump())
    await dispatcher.send_global_notification(notification)
    return ApiResponse.ok(notification, "Global notification sent")


@router.post("/users/{user_id}", response_model=ApiResponse[UserNotification])
async def send_user_notification(
    user_id: str,
    body: UserNotificationRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[UserNotification]:
    notification = UserNotification(user_id=user_id, **body.model_dump())
    await dispatcher.send_user_notification(user_id, notification)
    return ApiResponse.ok(notification, "Notification sent")
