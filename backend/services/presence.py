# backend/services/presence.py

from __future__ import annotations

from contextlib import AsyncExitStack
import logging

from core.errors import InvalidRoom, UnknownConnection
from models.models import PresencePayload, RoomInfo
from services.connection_manager import Connection, ConnectionManager
from services.room_manager import RoomManager

logger = logging.getLogger(__name__)

DEFAULT_ROOM_ID_MAX_LENGTH = 64


class PresenceCoordinator:
    """
    Join/leave transitions.

    Every transition updates the room table and the connection registry under
    the locks of all rooms it touches, and emits the presence notifications
    before releasing them, so other events for those rooms never observe a
    half-applied move.
    """

    def __init__(
        self,
        room_manager: RoomManager,
        connection_manager: ConnectionManager,
        room_id_max_length: int = DEFAULT_ROOM_ID_MAX_LENGTH,
    ) -> None:
        self.room_manager = room_manager
        self.connection_manager = connection_manager
        self.room_id_max_length = room_id_max_length

    def validate_room_id(self, room_id: str | None) -> str:
        room_id = (room_id or "").strip()
        if not room_id:
            raise InvalidRoom("Room id must not be empty")
        if len(room_id) > self.room_id_max_length:
            raise InvalidRoom(f"Room id longer than {self.room_id_max_length} characters")
        return room_id

    async def join(self, conn_id: str, room_id: str, username: str | None = None) -> RoomInfo:
        """
        Move a connection into a room.

        Args:
            conn_id: Registered connection id
            room_id: Target room, created on first use
            username: New display name (keeps the current one if empty)

        Returns:
            RoomInfo: Member count and replay window of the target room, as
            delivered to the joiner in its `roomInfo` event

        Raises:
            InvalidRoom: Empty or over-long room id, nothing changes
            UnknownConnection: conn_id is not registered

        Process:
            1. Leave the previous room (skipped on first join and on rejoin
               of the same room) and tell its remaining members
            2. Add the connection to the target room and update its session
            3. Send roomInfo to the joiner only
            4. Tell the other members of the target room
        """
        room_id = self.validate_room_id(room_id)

        connection = self.connection_manager.get_session(conn_id)
        if connection is None:
            raise UnknownConnection(conn_id)

        # One transition per connection at a time; room_id is stable inside
        async with connection.session_lock:
            if self.connection_manager.get_session(conn_id) is not connection:
                raise UnknownConnection(conn_id)
            return await self._join_locked(connection, room_id, username)

    async def _join_locked(self, connection: Connection, room_id: str, username: str | None) -> RoomInfo:
        conn_id = connection.conn_id
        old_username = connection.username
        new_username = (username or "").strip() or old_username

        target = self.room_manager.get_or_create_room(room_id)
        previous = None
        if connection.room_id is not None and connection.room_id != room_id:
            previous = self.room_manager.get_room(connection.room_id)

        # Always lock rooms in id order
        locked = sorted(filter(None, (target, previous)), key=lambda r: r.room_id)

        async with AsyncExitStack() as stack:
            for room in locked:
                await stack.enter_async_context(room.lock)

            if previous is not None:
                self.room_manager.remove_member(previous.room_id, conn_id)
                logger.info(
                    "📱 %s left #%s (%d online)", old_username, previous.room_id, previous.online
                )
                await self.connection_manager.broadcast(
                    previous.members, "userLeft", PresencePayload(username=old_username)
                )

            target.members.add(conn_id)
            self.connection_manager.set_session(conn_id, new_username, room_id)
            logger.info("📱 %s → #%s (%d online)", new_username, room_id, target.online)

            info = RoomInfo(online=target.online, messages=target.history())
            await self.connection_manager.send(conn_id, "roomInfo", info)
            await self.connection_manager.broadcast(
                target.members,
                "userJoined",
                PresencePayload(username=new_username),
                exclude=conn_id,
            )

        return info

    async def leave(self, conn_id: str) -> bool:
        """
        Drop a connection on disconnect.

        Removes it from its current room (telling the remaining members) and
        erases its session. Unregistered connections are a no-op.

        Returns:
            True if a session was removed
        """
        connection = self.connection_manager.get_session(conn_id)
        if connection is None:
            return False

        async with connection.session_lock:
            if self.connection_manager.get_session(conn_id) is not connection:
                return False

            room = self.room_manager.get_room(connection.room_id) if connection.room_id else None
            if room is not None:
                async with room.lock:
                    self.room_manager.remove_member(room.room_id, conn_id)
                    logger.info(
                        "📱 %s left #%s (%d online)", connection.username, room.room_id, room.online
                    )
                    await self.connection_manager.broadcast(
                        room.members, "userLeft", PresencePayload(username=connection.username)
                    )

            self.connection_manager.remove_session(conn_id)
        return True
