# backend/models/models.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageType(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """
    A single chat event as stored in a room log and sent as `newMessage`.

    Messages are immutable once created.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: int
    username: str
    text: str
    type: MessageType = MessageType.USER
    timestamp: str


class RoomInfo(BaseModel):
    """Snapshot handed to a joining connection (`roomInfo`)."""

    online: int
    messages: List[ChatMessage] = Field(default_factory=list)


class PresencePayload(BaseModel):
    username: str


class RoomSummary(BaseModel):
    room_id: str
    online: int
    message_count: int


# ============================================================================
# WEBSOCKET FRAMES
# ============================================================================

class ClientEvent(BaseModel):
    """Inbound frame: {"event": "joinRoom", "data": {...}}"""

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)


class JoinRoomRequest(BaseModel):
    roomId: str
    username: Optional[str] = ""


class ChatMessageRequest(BaseModel):
    text: str
    room: str
    username: str


class ErrorPayload(BaseModel):
    code: str
    message: str
