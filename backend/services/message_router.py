# backend/services/message_router.py

from __future__ import annotations

import asyncio
from datetime import datetime
import time
from typing import Optional, Set
import logging

from core.errors import AssistantUnavailable, StaleRoomOnReply, UnauthorizedSend
from models.models import ChatMessage, MessageType
from services.assistant import AssistantResponder
from services.connection_manager import ConnectionManager
from services.room_manager import RoomManager

logger = logging.getLogger(__name__)

TRIGGER_KEYWORDS = frozenset({"@ai", "bug", "error", "fix", "help"})
DEFAULT_ASSISTANT_NAME = "CodeGuard AI"


def should_trigger(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in TRIGGER_KEYWORDS)


class MessageIds:
    """Wall-clock millisecond ids, bumped so they never repeat or go backwards."""

    def __init__(self) -> None:
        self._last = 0

    def next(self) -> int:
        now = time.time_ns() // 1_000_000
        self._last = max(now, self._last + 1)
        return self._last


# ============================================================================
# MESSAGE ROUTER
# ============================================================================

class MessageRouter:
    """
    Appends chat messages to room logs and fans them out to room members.

    Messages that mention a trigger keyword also start an assistant call. The
    call runs in its own task without holding any room lock; its reply goes
    back through the same lock as an ordinary send, to the room captured when
    the triggering message was sent.

    Attributes:
        messages_sent: User messages accepted since startup
        assistant_calls: Responder invocations started
        assistant_replies: Replies delivered to a room
    """

    def __init__(
        self,
        room_manager: RoomManager,
        connection_manager: ConnectionManager,
        responder: AssistantResponder,
        assistant_name: str = DEFAULT_ASSISTANT_NAME,
    ) -> None:
        self.room_manager = room_manager
        self.connection_manager = connection_manager
        self.responder = responder
        self.assistant_name = assistant_name
        self.ids = MessageIds()

        self._pending: Set[asyncio.Task] = set()
        self.messages_sent = 0
        self.assistant_calls = 0
        self.assistant_replies = 0

    def build_message(self, username: str, text: str, kind: MessageType) -> ChatMessage:
        return ChatMessage(
            id=self.ids.next(),
            username=username,
            text=text,
            type=kind,
            timestamp=datetime.now().strftime("%I:%M:%S %p"),
        )

    async def send(
        self,
        conn_id: str,
        text: str,
        room_id: Optional[str] = None,
        username: Optional[str] = None,
    ) -> Optional[ChatMessage]:
        """
        Publish a user message to the sender's current room.

        Args:
            conn_id: Sending connection
            text: Message body, surrounding whitespace is stripped
            room_id: Room the client believes it is in (checked if given,
                     stripped like the room id it joined with)
            username: Name the client believes it has (checked if given,
                      blank means the current name, as on join)

        Returns:
            The broadcast message, or None for blank text

        Raises:
            UnauthorizedSend: Sender is not joined, or the claimed room or
            username does not match its session. Nothing is appended.
        """
        body = text or ""
        text = body.strip()
        if not text:
            return None

        connection = self.connection_manager.get_session(conn_id)
        if connection is None or connection.room_id is None:
            raise UnauthorizedSend(f"{conn_id[:8]} is not in a room")
        if room_id is not None:
            room_id = room_id.strip()
        if username is not None:
            username = username.strip() or connection.username

        if room_id is not None and room_id != connection.room_id:
            raise UnauthorizedSend(f"{conn_id[:8]} is in #{connection.room_id}, not #{room_id}")
        if username is not None and username != connection.username:
            raise UnauthorizedSend(f"{conn_id[:8]} is {connection.username!r}, not {username!r}")

        room = self.room_manager.get_room(connection.room_id)
        if room is None:
            raise UnauthorizedSend(f"#{connection.room_id} no longer exists")

        async with room.lock:
            if conn_id not in room.members:
                raise UnauthorizedSend(f"{conn_id[:8]} is not a member of #{room.room_id}")

            message = self.build_message(connection.username, text, MessageType.USER)
            room.append(message)
            await self.connection_manager.broadcast(room.members, "newMessage", message)

        self.messages_sent += 1

        if should_trigger(text):
            # The responder sees the body as the client sent it
            self.dispatch_assistant(room.room_id, body)

        return message

    # ------------------------------------------------------------------
    # Assistant relay
    # ------------------------------------------------------------------

    def dispatch_assistant(self, room_id: str, text: str) -> asyncio.Task:
        task = asyncio.create_task(self._relay_reply(room_id, text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self.assistant_calls += 1
        return task

    async def _relay_reply(self, room_id: str, text: str) -> None:
        try:
            reply = await self.responder.generate_reply(text)
        except AssistantUnavailable as e:
            logger.warning("Assistant unavailable for #%s: %s", room_id, e)
            return
        except Exception:
            logger.exception("Assistant failed for #%s", room_id)
            return

        try:
            await self.deliver_reply(room_id, reply)
        except StaleRoomOnReply as e:
            logger.info("Dropped assistant reply: %s", e)

    async def deliver_reply(self, room_id: str, text: str) -> Optional[ChatMessage]:
        """
        Append an assistant message to a room and broadcast it.

        Raises:
            StaleRoomOnReply: The room is gone by the time the reply arrives
        """
        text = (text or "").strip()
        if not text:
            return None

        room = self.room_manager.get_room(room_id)
        if room is None:
            raise StaleRoomOnReply(f"#{room_id} no longer exists")

        async with room.lock:
            if self.room_manager.get_room(room_id) is not room:
                raise StaleRoomOnReply(f"#{room_id} was torn down")

            message = self.build_message(self.assistant_name, text, MessageType.ASSISTANT)
            room.append(message)
            await self.connection_manager.broadcast(room.members, "newMessage", message)

        self.assistant_replies += 1
        logger.info("🤖 Reply delivered to #%s (%d online)", room_id, room.online)
        return message

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def wait_idle(self) -> None:
        """Wait until every assistant call started so far has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*list(self._pending), return_exceptions=True)
