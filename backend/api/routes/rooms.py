# backend/api/routes/rooms.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.routes.utils import get_relay
from models.models import RoomInfo, RoomSummary
from services.chat_relay import ChatRelay

router = APIRouter()

# ============================================================================
# ROOM READ ENDPOINTS
# ============================================================================

@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(relay: ChatRelay = Depends(get_relay)):
    """
    List all rooms created since startup.

    Rooms appear on first join and stay listed when they empty out.

    Returns:
        List[RoomSummary]: Every room with its online count
    """
    return relay.room_manager.list_rooms()


@router.get("/rooms/{room_id}", response_model=RoomInfo)
async def get_room(room_id: str, relay: ChatRelay = Depends(get_relay)):
    """
    Get the online count and replay window of a room.

    Args:
        room_id: Room key

    Returns:
        RoomInfo: Same shape as the roomInfo event a joiner receives

    Raises:
        HTTPException: 404 if room not found
    """
    room = relay.room_manager.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomInfo(online=room.online, messages=room.history())
