# backend/services/chat_relay.py

from __future__ import annotations

from datetime import datetime, timezone
import uuid
from typing import Optional
import logging

from services.assistant import AssistantResponder, build_responder
from services.connection_manager import ConnectionManager, Sender
from services.message_router import MessageRouter
from services.presence import PresenceCoordinator
from services.room_manager import RoomManager

logger = logging.getLogger(__name__)


class ChatRelay:
    """
    The process-wide chat service.

    Owns the room table, the connection registry, the presence coordinator
    and the message router. One instance is created at application startup,
    stored on `app.state.relay` and handed to handlers from there; `close()`
    tears it down at shutdown.

    Usage:
        relay = ChatRelay(responder=CannedAssistantResponder())
        conn_id = relay.connect(websocket.send_json)
        await relay.presence.join(conn_id, "general", "alice")
        await relay.router.send(conn_id, "hi")
        await relay.disconnect(conn_id)
    """

    def __init__(
        self,
        responder: AssistantResponder,
        history_limit: int = 30,
        room_id_max_length: int = 64,
        assistant_name: str = "CodeGuard AI",
    ) -> None:
        self.room_manager = RoomManager(history_limit=history_limit)
        self.connection_manager = ConnectionManager()
        self.presence = PresenceCoordinator(
            self.room_manager,
            self.connection_manager,
            room_id_max_length=room_id_max_length,
        )
        self.router = MessageRouter(
            self.room_manager,
            self.connection_manager,
            responder,
            assistant_name=assistant_name,
        )
        self.responder = responder
        self.started_at = datetime.now(timezone.utc)
        self.closed = False

    @classmethod
    def from_settings(cls, settings) -> "ChatRelay":
        return cls(
            responder=build_responder(settings),
            history_limit=settings.HISTORY_LIMIT,
            room_id_max_length=settings.ROOM_ID_MAX_LENGTH,
            assistant_name=settings.ASSISTANT_NAME,
        )

    def connect(self, sender: Sender, username: Optional[str] = None) -> str:
        """Register a new transport connection and return its opaque id."""
        conn_id = uuid.uuid4().hex
        self.connection_manager.register(conn_id, sender, username)
        return conn_id

    async def disconnect(self, conn_id: str) -> None:
        await self.presence.leave(conn_id)

    def stats(self) -> dict:
        uptime_seconds = (datetime.now(timezone.utc) - self.started_at).total_seconds()
        return {
            "uptime_seconds": uptime_seconds,
            "connections": self.connection_manager.count(),
            "rooms": len(self.room_manager.rooms),
            "active_rooms_with_members": self.room_manager.active_rooms(),
            "messages_sent": self.router.messages_sent,
            "assistant_calls": self.router.assistant_calls,
            "assistant_replies": self.router.assistant_replies,
            "assistant_pending": self.router.pending,
        }

    async def close(self) -> None:
        """Drop all state and stop pending assistant calls."""
        if self.closed:
            return
        self.closed = True
        self.room_manager.clear()
        await self.router.close()
        await self.responder.aclose()
        self.connection_manager.connections.clear()
        logger.info("Chat relay closed")
