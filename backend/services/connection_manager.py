# backend/services/connection_manager.py

from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional
import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Coroutine that pushes one JSON-able frame to the client, e.g. WebSocket.send_json
Sender = Callable[[dict], Awaitable[None]]


def default_username() -> str:
    return f"Guest_{random.randint(0, 999)}"


def build_frame(event: str, payload: Any) -> dict:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    return {"event": event, "data": payload}


# ============================================================================
# CONNECTION SESSION
# ============================================================================

class Connection:
    """
    One live client session.

    Attributes:
        conn_id: Opaque id, unique per live connection
        username: Display name, mutable on every join, not unique
        room_id: Current room, None until the first join
        sender: Transport coroutine used to deliver frames
        send_lock: Keeps frames from different tasks from interleaving
        session_lock: Serializes join/leave transitions of this connection
    """

    def __init__(self, conn_id: str, sender: Sender, username: Optional[str] = None) -> None:
        self.conn_id = conn_id
        self.username = username or default_username()
        self.room_id: Optional[str] = None
        self.sender = sender
        self.send_lock = asyncio.Lock()
        self.session_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Connection({self.conn_id[:8]}, {self.username!r}, room={self.room_id!r})"


# ============================================================================
# CONNECTION REGISTRY
# ============================================================================

class ConnectionManager:
    """
    Maps connection ids to their sessions and delivers frames to them.

    The session's room_id is the room-of-record for a connection; room member
    sets only hold ids and are kept consistent by the presence coordinator.

    Delivery is best-effort: a failing send is logged and reported as False,
    it never propagates to the caller. Dead connections are reaped when their
    transport loop ends, not here.
    """

    def __init__(self) -> None:
        # Map: conn_id -> Connection
        self.connections: Dict[str, Connection] = {}

    def register(self, conn_id: str, sender: Sender, username: Optional[str] = None) -> Connection:
        """
        Track a freshly accepted transport connection.

        Args:
            conn_id: Opaque connection id
            sender: Coroutine delivering one frame to this connection
            username: Initial display name (a Guest_N name is generated if empty)

        Note:
            The connection is not in any room until it sends joinRoom.
        """
        connection = Connection(conn_id, sender, username)
        self.connections[conn_id] = connection
        logger.info("✓ %s connected. Total: %d", conn_id[:8], len(self.connections))
        return connection

    def get_session(self, conn_id: str) -> Optional[Connection]:
        return self.connections.get(conn_id)

    def set_session(self, conn_id: str, username: str, room_id: Optional[str]) -> Optional[Connection]:
        connection = self.connections.get(conn_id)
        if connection is None:
            return None
        connection.username = username
        connection.room_id = room_id
        return connection

    def remove_session(self, conn_id: str) -> Optional[Connection]:
        connection = self.connections.pop(conn_id, None)
        if connection is not None:
            logger.info("✗ %s disconnected. Total: %d", conn_id[:8], len(self.connections))
        return connection

    def count(self) -> int:
        return len(self.connections)

    async def send(self, conn_id: str, event: str, payload: Any) -> bool:
        """
        Deliver one event to one connection.

        Returns:
            True if the frame was handed to the transport, False if the
            connection is unknown or the send failed
        """
        connection = self.connections.get(conn_id)
        if connection is None:
            return False

        frame = build_frame(event, payload)
        try:
            async with connection.send_lock:
                await connection.sender(frame)
        except Exception as e:
            logger.warning("Send error to %s (%s): %s", conn_id[:8], event, e)
            return False
        return True

    async def broadcast(
        self,
        conn_ids: Iterable[str],
        event: str,
        payload: Any,
        exclude: Optional[str] = None,
    ) -> int:
        """
        Deliver one event to every listed connection.

        Args:
            conn_ids: Recipients (usually a room's member set)
            event: Outbound event name
            payload: Event payload (dict or pydantic model)
            exclude: Connection to skip, e.g. the actor of a presence change

        Returns:
            Number of successful deliveries

        Error Handling:
            A failure to one member does not abort delivery to the rest.
        """
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")

        recipients = [cid for cid in list(conn_ids) if cid != exclude]
        if not recipients:
            return 0

        results = await asyncio.gather(
            *(self.send(cid, event, payload) for cid in recipients)
        )
        return sum(1 for ok in results if ok)
