"""WebSocket notification hub: connection registry and group membership."""

import logging
from typing import Any
from uuid import uuid4

from fastapi import WebSocket

from devnexus.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Tracks open hub connections and the groups each one joined.

    Lives on the event loop only. Sends iterate over a snapshot so joins and
    disconnects during an await do not disturb the loop; a failed send drops the connection.
    """

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._groups: dict[str, set[str]] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = uuid4().hex
        self._connections[connection_id] = websocket
        logger.info("Hub connection opened", extra={"connection_id": connection_id})
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        for group in list(self._groups):
            members = self._groups[group]
            members.discard(connection_id)
            if not members:
                del self._groups[group]
        logger.info("Hub connection closed", extra={"connection_id": connection_id})

    def join(self, connection_id: str, group: str) -> None:
        if connection_id not in self._connections:
            return
        self._groups.setdefault(group, set()).add(connection_id)

    def leave(self, connection_id: str, group: str) -> None:
        members = self._groups.get(group)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._groups[group]

    def groups_of(self, connection_id: str) -> set[str]:
        return {g for g, members in self._groups.items() if connection_id in members}

    def __len__(self) -> int:
        return len(self._connections)

    async def _send(self, connection_ids: list[str], frame: dict[str, Any]) -> None:
        dead: list[str] = []
        for connection_id in connection_ids:
            websocket = self._connections.get(connection_id)
            if websocket is None:
                continue
            try:
                await websocket.send_json(frame)
            except Exception:
                logger.warning(
                    "Hub send failed; dropping connection",
                    extra={"connection_id": connection_id},
                )
                dead.append(connection_id)
        for connection_id in dead:
            self.disconnect(connection_id)

    async def send_to_group(
        self, group: str, event: str, target: str, payload: dict[str, Any]
    ) -> None:
        members = list(self._groups.get(group, ()))
        await self._send(members, {"event": event, "target": target, "data": payload})

    async def send_to_all(self, event: str, target: str, payload: dict[str, Any]) -> None:
        await self._send(
            list(self._connections), {"event": event, "target": target, "data": payload}
        )


manager = ConnectionManager()


def get_dispatcher() -> NotificationDispatcher:
    """Dependency: dispatcher bound to the process-wide hub."""
    return NotificationDispatcher(manager)
