# backend/api/websocket.py

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from core.errors import ChatRelayError, UnauthorizedSend
from models.models import ChatMessageRequest, ClientEvent, ErrorPayload, JoinRoomRequest
from services.chat_relay import ChatRelay

logger = logging.getLogger(__name__)

router = APIRouter()


async def send_error(relay: ChatRelay, conn_id: str, code: str, message: str) -> None:
    await relay.connection_manager.send(conn_id, "error", ErrorPayload(code=code, message=message))


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for room chat.

    Protocol:
    =========
    Every frame is a JSON object {"event": "<name>", "data": {...}}.

    Client -> Server Events:
    ------------------------
    Join Room:
        {"event": "joinRoom", "data": {"roomId": "general", "username": "alice"}}
        Response: roomInfo to the joiner, userJoined to everyone else

    Chat Message:
        {"event": "chatMessage", "data": {"text": "hi", "room": "general", "username": "alice"}}
        Response: newMessage to every member, including the sender.
        Dropped silently if room/username don't match the session.

    Server -> Client Events:
    ------------------------
    roomInfo:    {"online": 2, "messages": [...last 30...]}
    userJoined:  {"username": "bob"}
    userLeft:    {"username": "bob"}
    newMessage:  {"id": 1700000000000, "username": "alice", "text": "hi",
                  "type": "user", "timestamp": "03:04:05 PM"}
    error:       {"code": "InvalidRoom", "message": "..."}

    Lifecycle:
    ==========
    1. Connection accepted and registered with a generated Guest_N name
    2. Client sends joinRoom (again to switch rooms)
    3. On disconnect the connection leaves its room and is forgotten
    """
    relay: ChatRelay = websocket.app.state.relay

    await websocket.accept()
    conn_id = relay.connect(websocket.send_json)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                frame = ClientEvent.model_validate(json.loads(data))
                logger.debug("Websocket input from %s: %s", conn_id[:8], frame.event)

                if frame.event == "joinRoom":
                    request = JoinRoomRequest.model_validate(frame.data)
                    await relay.presence.join(conn_id, request.roomId, request.username)

                elif frame.event == "chatMessage":
                    request = ChatMessageRequest.model_validate(frame.data)
                    await relay.router.send(
                        conn_id, request.text, room_id=request.room, username=request.username
                    )

                else:
                    await send_error(relay, conn_id, "UnknownEvent", f"Unknown event: {frame.event}")

            except json.JSONDecodeError:
                await send_error(relay, conn_id, "InvalidJSON", "Invalid JSON")
            except ValidationError as e:
                await send_error(relay, conn_id, "InvalidPayload", str(e))
            except UnauthorizedSend as e:
                # Desynchronized clients get no feedback
                logger.debug("Dropped message: %s", e)
            except ChatRelayError as e:
                await send_error(relay, conn_id, e.code, str(e))

    except WebSocketDisconnect:
        await relay.disconnect(conn_id)
    except Exception as e:
        logger.error("WebSocket error: %s", e)
        await relay.disconnect(conn_id)
