# backend/services/room_manager.py

from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, Dict, List, Optional, Set
import logging

from models.models import ChatMessage, RoomSummary

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 30


# ============================================================================
# ROOM STATE
# ============================================================================

class Room:
    """
    A named broadcast group.

    Attributes:
        room_id: Key the room was created under
        members: Connection ids currently in the room (ids only, the
                 connection registry owns the sessions)
        messages: Most recent messages, oldest first
        total_messages: Number of messages ever appended
        lock: Guards membership, log append, history reads and the fan-out
              of the events those produce
    """

    def __init__(self, room_id: str, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.room_id = room_id
        self.members: Set[str] = set()
        # Replay window only
        self.messages: Deque[ChatMessage] = deque(maxlen=history_limit)
        self.total_messages = 0
        self.lock = asyncio.Lock()

    @property
    def online(self) -> int:
        return len(self.members)

    def append(self, message: ChatMessage) -> None:
        self.messages.append(message)
        self.total_messages += 1

    def history(self) -> List[ChatMessage]:
        """Replay window in send order."""
        return list(self.messages)


# ============================================================================
# ROOM TABLE
# ============================================================================

class RoomManager:
    """
    In-memory table of rooms keyed by room id.

    Rooms are created lazily on first join and are never deleted while the
    process runs; an empty room keeps its history for the next joiner.
    Nothing is persisted, a restart starts from an empty table.

    Usage:
        room_manager = RoomManager(history_limit=30)
        room = room_manager.get_or_create_room("general")
        room_manager.remove_member("general", conn_id)
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.history_limit = history_limit
        self.rooms: Dict[str, Room] = {}

    def get_or_create_room(self, room_id: str) -> Room:
        """
        Get a room, creating an empty one if it does not exist yet.

        Args:
            room_id: Room key

        Returns:
            Room: The existing or newly created room
        """
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(room_id, history_limit=self.history_limit)
            self.rooms[room_id] = room
            logger.info("✓ Created room #%s", room_id)
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def remove_member(self, room_id: str, conn_id: str) -> Optional[Room]:
        """
        Drop a connection from a room's member set.

        Tolerates unknown rooms and connections that already left.

        Returns:
            The room the member was removed from, or None if it doesn't exist
        """
        room = self.rooms.get(room_id)
        if room is not None:
            room.members.discard(conn_id)
        return room

    def history(self, room_id: str) -> List[ChatMessage]:
        room = self.rooms.get(room_id)
        return room.history() if room else []

    def list_rooms(self) -> List[RoomSummary]:
        return [
            RoomSummary(room_id=room.room_id, online=room.online, message_count=room.total_messages)
            for room in self.rooms.values()
        ]

    def active_rooms(self) -> int:
        """Number of rooms with at least one member."""
        return sum(1 for room in self.rooms.values() if room.members)

    def clear(self) -> None:
        self.rooms.clear()
