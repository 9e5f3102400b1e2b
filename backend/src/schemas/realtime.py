"""
Pydantic schemas for the real-time WebSocket relay.

Inbound frames are ``{"event": "<name>", "data": {...}}``. Relayed payloads
are free-form dictionaries, so only the fields the relay itself reads are
declared; everything else passes through untouched.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RealtimeMessage(BaseModel):
    """One JSON frame received from or sent to a client."""

    event: str = Field(..., min_length=1, max_length=64)
    data: Dict[str, Any] = Field(default_factory=dict)


class RoomPayload(BaseModel):
    """Payload of join:room, leave:room and typing events."""

    model_config = ConfigDict(extra="allow")

    room_id: str = Field(..., min_length=1, max_length=255)


class TaskAssignPayload(BaseModel):
    """Payload of task:assign; ``assigned_to`` is the assignee's user GUID."""

    model_config = ConfigDict(extra="allow")

    assigned_to: Optional[str] = None


class ConnectedUser(BaseModel):
    user_guid: str
    user_name: str
    company: Optional[str] = None
    connected_at: str


class PresenceResponse(BaseModel):
    """Response of GET /api/realtime/presence."""

    count: int
    connections: int
    users: List[ConnectedUser]
