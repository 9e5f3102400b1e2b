"""
Real-time relay service.

Turns inbound WebSocket frames into outbound notifications and exposes the
server-side push API used by REST handlers.

Inbound → outbound:
    activity:create   → activity:new       (all other clients, created_by)
    deal:update       → deal:updated       (all other clients, updated_by)
    lead:update       → lead:updated       (all other clients, updated_by)
    contact:update    → contact:updated    (all other clients, updated_by)
    task:assign       → task:assigned      (assignee only, assigned_by)
    typing:start/stop → typing:start/stop  (other members of room_id)
    join:room / leave:room                 (membership only)

Handler failures never close the connection; they are logged and the
offending frame is dropped.
"""

import json
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import WebSocket
from pydantic import ValidationError as PydanticValidationError

from backend.src.schemas.realtime import RealtimeMessage, RoomPayload, TaskAssignPayload
from backend.src.utils.logging_config import get_logger
from backend.src.utils.websocket import (
    ClientInfo,
    ConnectionManager,
    company_room,
    get_connection_manager,
)


logger = get_logger("websocket")


# Inbound event → (outbound event, attribution key)
RELAYED_EVENTS: Dict[str, tuple] = {
    "activity:create": ("activity:new", "created_by"),
    "deal:update": ("deal:updated", "updated_by"),
    "lead:update": ("lead:updated", "updated_by"),
    "contact:update": ("contact:updated", "updated_by"),
}

TYPING_EVENTS = frozenset({"typing:start", "typing:stop"})


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def envelope(event: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Wire format of every outbound frame."""
    return {"event": event, "data": data or {}}


class RealtimeService:
    """
    Relay between connected clients, plus the server push API.

    Usage:
        >>> service = RealtimeService(get_connection_manager())
        >>> await service.notify_user("usr_01hgw2bbg...", "task:assigned", {...})
    """

    def __init__(self, manager: ConnectionManager):
        self.manager = manager
        self._handlers: Dict[str, Callable[[WebSocket, ClientInfo, Dict[str, Any]], Awaitable[None]]] = {
            "task:assign": self._on_task_assign,
            "join:room": self._on_join_room,
            "leave:room": self._on_leave_room,
        }

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(
        self,
        websocket: WebSocket,
        user_guid: str,
        user_name: str,
        company: Optional[str] = None,
    ) -> None:
        """Register an authenticated connection and announce the user."""
        await self.manager.register(websocket, user_guid, user_name, company)
        logger.info(f"User connected: {user_name} ({user_guid})")
        await self.manager.broadcast(
            envelope("user:online", {
                "user_id": user_guid,
                "user_name": user_name,
                "timestamp": _timestamp(),
            }),
            exclude=websocket,
        )

    async def disconnect(self, websocket: WebSocket) -> None:
        """
        Unregister a connection.

        ``user:offline`` is broadcast only when this was the user's
        addressable connection, so each presence entry yields one offline
        event.
        """
        info, went_offline = self.manager.unregister(websocket)
        if info is None:
            return
        logger.info(f"User disconnected: {info.user_name} ({info.user_guid})")
        if went_offline:
            await self.manager.broadcast(
                envelope("user:offline", {
                    "user_id": info.user_guid,
                    "user_name": info.user_name,
                    "timestamp": _timestamp(),
                }),
            )

    # ------------------------------------------------------------------
    # Inbound dispatch
    # ------------------------------------------------------------------

    async def handle_text(self, websocket: WebSocket, raw: str) -> None:
        """
        Handle one text frame from a client.

        Never raises: malformed JSON, unknown events and bad payloads are
        logged and ignored.
        """
        info = self.manager.get_client(websocket)
        if info is None:
            logger.warning("Dropping frame from unregistered WebSocket")
            return

        try:
            message = RealtimeMessage.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError, TypeError) as e:
            logger.warning(f"Malformed frame from {info.user_guid}: {e}")
            return

        try:
            await self.dispatch(websocket, info, message.event, message.data)
        except PydanticValidationError as e:
            logger.warning(f"Invalid '{message.event}' payload from {info.user_guid}: {e}")
        except Exception as e:
            logger.error(
                f"Error handling '{message.event}' from {info.user_guid}: {e}",
                exc_info=True,
            )

    async def dispatch(
        self,
        websocket: WebSocket,
        info: ClientInfo,
        event: str,
        data: Dict[str, Any],
    ) -> None:
        if event in RELAYED_EVENTS:
            await self._relay(websocket, info, event, data)
        elif event in TYPING_EVENTS:
            await self._on_typing(websocket, info, event, data)
        elif event in self._handlers:
            await self._handlers[event](websocket, info, data)
        else:
            logger.debug(f"Ignoring unknown event '{event}' from {info.user_guid}")

    async def _relay(
        self,
        websocket: WebSocket,
        info: ClientInfo,
        event: str,
        data: Dict[str, Any],
    ) -> None:
        outbound, attribution = RELAYED_EVENTS[event]
        payload = {
            **data,
            attribution: {"id": info.user_guid, "name": info.user_name},
            "timestamp": _timestamp(),
        }
        await self.manager.broadcast(envelope(outbound, payload), exclude=websocket)

    async def _on_task_assign(self, websocket: WebSocket, info: ClientInfo, data: Dict[str, Any]) -> None:
        payload = TaskAssignPayload.model_validate(data)
        if not payload.assigned_to:
            logger.debug(f"task:assign without assignee from {info.user_guid}; ignored")
            return
        await self.notify_user(
            payload.assigned_to,
            "task:assigned",
            {
                **data,
                "assigned_by": {"id": info.user_guid, "name": info.user_name},
                "timestamp": _timestamp(),
            },
        )

    async def _on_typing(
        self,
        websocket: WebSocket,
        info: ClientInfo,
        event: str,
        data: Dict[str, Any],
    ) -> None:
        payload = RoomPayload.model_validate(data)
        await self.manager.send_to_room(
            payload.room_id,
            envelope(event, {
                "user_id": info.user_guid,
                "user_name": info.user_name,
                "room_id": payload.room_id,
            }),
            exclude=websocket,
        )

    async def _on_join_room(self, websocket: WebSocket, info: ClientInfo, data: Dict[str, Any]) -> None:
        payload = RoomPayload.model_validate(data)
        self.manager.join_room(websocket, payload.room_id)
        logger.info(f"User {info.user_guid} joined room {payload.room_id}")

    async def _on_leave_room(self, websocket: WebSocket, info: ClientInfo, data: Dict[str, Any]) -> None:
        payload = RoomPayload.model_validate(data)
        self.manager.leave_room(websocket, payload.room_id)
        logger.info(f"User {info.user_guid} left room {payload.room_id}")

    # ------------------------------------------------------------------
    # Server push API
    # ------------------------------------------------------------------

    async def notify_user(self, user_guid: str, event: str, data: Dict[str, Any]) -> bool:
        """Push to one user's addressable connection. Returns False if they are offline."""
        delivered = await self.manager.send_to_user(user_guid, envelope(event, data))
        if not delivered:
            logger.debug(f"'{event}' for {user_guid} not delivered (offline)")
        return delivered

    async def notify_company(self, company: str, event: str, data: Dict[str, Any]) -> int:
        return await self.manager.send_to_room(company_room(company), envelope(event, data))

    async def broadcast(
        self,
        event: str,
        data: Dict[str, Any],
        exclude: Optional[WebSocket] = None,
    ) -> int:
        return await self.manager.broadcast(envelope(event, data), exclude=exclude)

    def connected_user_count(self) -> int:
        return self.manager.get_connected_user_count()

    def connected_users(self) -> List[Dict[str, Any]]:
        return self.manager.get_connected_users()


def get_realtime_service() -> RealtimeService:
    """FastAPI dependency: relay bound to the process-wide connection manager."""
    return RealtimeService(get_connection_manager())
