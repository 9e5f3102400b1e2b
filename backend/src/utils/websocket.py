"""
WebSocket connection registry for real-time presence and notifications.

Keeps three views of the live connections:
- presence: user GUID → the user's most recent connection (last write wins)
- rooms: room name → member connections (personal "user_<guid>" rooms,
  "company_<name>" rooms and caller-chosen rooms such as a deal thread)
- clients: connection → who is on it and which rooms it joined

Usage:
    from backend.src.utils.websocket import get_connection_manager

    manager = get_connection_manager()
    await manager.register(websocket, user_guid, user_name, company)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.unregister(websocket)

    # Push to one user from anywhere in the app
    await manager.send_to_user(user_guid, {"event": "task:assigned", "data": {...}})
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

from fastapi import WebSocket

from backend.src.utils.logging_config import get_logger

logger = get_logger("websocket")


USER_ROOM_PREFIX = "user_"
COMPANY_ROOM_PREFIX = "company_"


def user_room(user_guid: str) -> str:
    return f"{USER_ROOM_PREFIX}{user_guid}"


def company_room(company: str) -> str:
    return f"{COMPANY_ROOM_PREFIX}{company}"


@dataclass
class ClientInfo:
    """
    Identity and membership of one live connection.

    Attributes:
        user_guid: Authenticated user (usr_xxx)
        user_name: Display name stamped into relayed events
        company: Company channel the connection joined, if any
        connected_at: Registration time (UTC)
        rooms: Rooms this connection is a member of
        active: False once a send has failed; the connection then only
            waits for its endpoint to unregister it
    """

    user_guid: str
    user_name: str
    company: Optional[str] = None
    connected_at: datetime = field(default_factory=datetime.utcnow)
    rooms: Set[str] = field(default_factory=set)
    active: bool = True


class ConnectionManager:
    """
    Manages authenticated WebSocket connections.

    A user is addressable through exactly one connection: registering a
    second connection for the same user replaces the first in the presence
    map and in the personal room. The replaced connection stays open and
    keeps receiving broadcasts and room traffic until it disconnects.

    Registry is process-local; a multi-instance deployment would need a
    shared store.
    """

    def __init__(self):
        self._clients: Dict[WebSocket, ClientInfo] = {}
        self._presence: Dict[str, WebSocket] = {}
        self._rooms: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register(
        self,
        websocket: WebSocket,
        user_guid: str,
        user_name: str,
        company: Optional[str] = None,
    ) -> Optional[WebSocket]:
        """
        Register an already-accepted, already-authenticated connection.

        Joins the personal room and, when ``company`` is set, the company
        room.

        Returns:
            The connection this one replaced as the user's addressable
            connection, or None
        """
        async with self._lock:
            info = ClientInfo(user_guid=user_guid, user_name=user_name, company=company)
            self._clients[websocket] = info

            previous = self._presence.get(user_guid)
            if previous is not None and previous is not websocket:
                self._leave(previous, user_room(user_guid))
                logger.info(
                    f"User {user_guid} opened a new connection; "
                    f"previous connection is no longer addressable"
                )
            self._presence[user_guid] = websocket

            self._join(websocket, user_room(user_guid))
            if company:
                self._join(websocket, company_room(company))

            logger.debug(
                f"WebSocket registered for user {user_guid}. "
                f"Total connections: {len(self._clients)}"
            )
            return previous if previous is not websocket else None

    def unregister(self, websocket: WebSocket) -> Tuple[Optional[ClientInfo], bool]:
        """
        Forget a connection.

        Synchronous so it can run from ``finally`` blocks. The user's
        presence entry is removed only if it still points at this
        connection.

        Returns:
            (client info or None if unknown, whether the user went offline)
        """
        info = self._clients.pop(websocket, None)
        if info is None:
            return None, False

        for room in list(info.rooms):
            self._leave(websocket, room)

        went_offline = self._presence.get(info.user_guid) is websocket
        if went_offline:
            del self._presence[info.user_guid]

        logger.debug(
            f"WebSocket unregistered for user {info.user_guid}. "
            f"Remaining connections: {len(self._clients)}"
        )
        return info, went_offline

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    def _join(self, websocket: WebSocket, room: str) -> None:
        self._rooms.setdefault(room, set()).add(websocket)
        info = self._clients.get(websocket)
        if info is not None:
            info.rooms.add(room)

    def _leave(self, websocket: WebSocket, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(websocket)
            if not members:
                del self._rooms[room]
        info = self._clients.get(websocket)
        if info is not None:
            info.rooms.discard(room)

    def join_room(self, websocket: WebSocket, room: str) -> bool:
        """Add a registered connection to a room. Returns False for unknown connections."""
        if websocket not in self._clients:
            return False
        self._join(websocket, room)
        return True

    def leave_room(self, websocket: WebSocket, room: str) -> None:
        self._leave(websocket, room)

    def get_room_members(self, room: str) -> Set[WebSocket]:
        return set(self._rooms.get(room, set()))

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _evict(self, websocket: WebSocket) -> None:
        """Take a connection out of every room after a failed send."""
        info = self._clients.get(websocket)
        if info is None:
            return
        info.active = False
        for room in list(info.rooms):
            self._leave(websocket, room)

    async def send_personal(self, websocket: WebSocket, data: Dict[str, Any]) -> bool:
        """
        Send to one connection.

        Returns:
            True if sent, False if the send failed (connection is evicted)
        """
        try:
            await websocket.send_json(data)
            return True
        except Exception as e:
            logger.debug(f"Failed to send to WebSocket: {e}")
            self._evict(websocket)
            return False

    async def _fan_out(self, targets: Set[WebSocket], data: Dict[str, Any]) -> int:
        sent = 0
        for connection in targets:
            if await self.send_personal(connection, data):
                sent += 1
        return sent

    async def send_to_room(
        self,
        room: str,
        data: Dict[str, Any],
        exclude: Optional[WebSocket] = None,
    ) -> int:
        """
        Send to every member of a room.

        Returns:
            Number of connections the message reached
        """
        targets = self.get_room_members(room)
        targets.discard(exclude)
        return await self._fan_out(targets, data)

    async def send_to_user(self, user_guid: str, data: Dict[str, Any]) -> bool:
        """
        Send to a user's personal room, i.e. their most recent connection.

        Returns:
            True if delivered, False if the user is offline or the send failed
        """
        return await self.send_to_room(user_room(user_guid), data) > 0

    async def broadcast(
        self,
        data: Dict[str, Any],
        exclude: Optional[WebSocket] = None,
    ) -> int:
        """
        Send to every active connection except ``exclude``.

        Returns:
            Number of connections the message reached
        """
        targets = {ws for ws, info in self._clients.items() if info.active}
        targets.discard(exclude)
        return await self._fan_out(targets, data)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_client(self, websocket: WebSocket) -> Optional[ClientInfo]:
        return self._clients.get(websocket)

    def get_connection(self, user_guid: str) -> Optional[WebSocket]:
        """The user's addressable connection, or None when offline."""
        return self._presence.get(user_guid)

    def is_online(self, user_guid: str) -> bool:
        return user_guid in self._presence

    def get_connection_count(self) -> int:
        return len(self._clients)

    def get_connected_user_count(self) -> int:
        return len(self._presence)

    def get_connected_users(self) -> List[Dict[str, Any]]:
        """Snapshot of online users with their addressable connection's details."""
        users = []
        for user_guid, websocket in self._presence.items():
            info = self._clients.get(websocket)
            if info is None:
                continue
            users.append({
                "user_guid": user_guid,
                "user_name": info.user_name,
                "company": info.company,
                "connected_at": info.connected_at.isoformat() + "Z",
            })
        return users

    async def close_all(self, code: int = 1001, reason: str = "Server shutting down") -> None:
        """Close every connection (application shutdown)."""
        for connection in list(self._clients):
            try:
                await connection.close(code=code, reason=reason)
            except Exception as e:
                logger.debug(f"Error closing WebSocket during shutdown: {e}")
            self.unregister(connection)


# Singleton instance
_connection_manager: Optional[ConnectionManager] = None


def get_connection_manager() -> ConnectionManager:
    """Get the process-wide ConnectionManager, creating it on first call."""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = ConnectionManager()
    return _connection_manager
