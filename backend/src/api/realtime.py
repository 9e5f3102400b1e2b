"""
Real-time API.

- WebSocket /ws - Authenticated presence and notification relay
- GET /api/realtime/presence - Connected users (administrators)

WebSocket authentication: bearer token in the ``token`` query parameter
or the ``Authorization: Bearer`` header. Rejected connections are closed
with code 4001 before they are registered anywhere. Failed socket logins
count towards the same per-IP block as HTTP bearer failures.

Binary frames are logged and dropped.

Wire format: JSON text frames ``{"event": "...", "data": {...}}``. A plain
``ping`` frame is answered with ``pong``; idle connections receive
``{"event": "heartbeat"}`` every WS_HEARTBEAT_SECONDS.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import sessionmaker

from backend.src.config.settings import get_settings
from backend.src.db.database import get_session_factory
from backend.src.middleware.auth import (
    AuthContext,
    TokenBlocked,
    TokenRejected,
    require_admin,
    verify_caller,
)
from backend.src.schemas.realtime import ConnectedUser, PresenceResponse
from backend.src.services.realtime_service import RealtimeService, envelope, get_realtime_service
from backend.src.utils.client_ip import get_client_ip
from backend.src.utils.logging_config import get_logger


logger = get_logger("websocket")

WS_AUTH_FAILED = 4001

router = APIRouter(prefix="/realtime", tags=["Realtime"])
ws_router = APIRouter(tags=["Realtime"])


def websocket_token(websocket: WebSocket) -> Optional[str]:
    """Token from the ``token`` query parameter, else the Authorization header."""
    token = websocket.query_params.get("token")
    if token:
        return token
    auth_header = websocket.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


@router.get(
    "/presence",
    response_model=PresenceResponse,
    summary="Connected users",
)
async def get_presence(
    ctx: AuthContext = Depends(require_admin),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> PresenceResponse:
    users = realtime.connected_users()
    return PresenceResponse(
        count=len(users),
        connections=realtime.manager.get_connection_count(),
        users=[ConnectedUser(**u) for u in users],
    )


@ws_router.websocket("/ws")
async def realtime_websocket(
    websocket: WebSocket,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """
    Presence and notification relay.

    Lifecycle:
    1. Accept, then authenticate (close 4001 on failure)
    2. Register: presence, personal room, company room; announce user:online
    3. Relay inbound frames until the client disconnects
    4. Unregister; announce user:offline

    The database is only touched during step 1; the session is closed
    before the connection is registered.
    """
    # Must accept before close() can carry a custom code
    await websocket.accept()

    client_ip = get_client_ip(websocket)
    token = websocket_token(websocket)
    try:
        if not token:
            raise TokenRejected("Not authorized to access this route")
        with session_factory() as db:
            ctx = verify_caller(token, db, client_ip)
    except TokenRejected as e:
        logger.info(f"WebSocket authentication failed from {client_ip}: {e.reason}")
        reason = e.reason if isinstance(e, TokenBlocked) else "Authentication required"
        await websocket.close(code=WS_AUTH_FAILED, reason=reason)
        return

    realtime = get_realtime_service()
    heartbeat = get_settings().ws_heartbeat_seconds

    await realtime.connect(websocket, ctx.user_guid, ctx.full_name, ctx.company)

    try:
        while True:
            try:
                message = await asyncio.wait_for(websocket.receive(), timeout=heartbeat)
            except asyncio.TimeoutError:
                try:
                    await websocket.send_json(envelope("heartbeat"))
                except Exception:
                    break
                continue

            if message["type"] == "websocket.disconnect":
                break

            data = message.get("text")
            if data is None:
                logger.info(f"Dropped binary frame from user {ctx.user_guid}")
                continue

            if data == "ping":
                await websocket.send_text("pong")
            else:
                await realtime.handle_text(websocket, data)
    except WebSocketDisconnect:
        pass
    finally:
        await realtime.disconnect(websocket)
