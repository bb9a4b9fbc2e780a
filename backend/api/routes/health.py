# backend/api/routes/health.py

from fastapi import APIRouter, Depends

from api.routes.utils import get_relay
from services.chat_relay import ChatRelay

router = APIRouter()

@router.get("/health")
async def health(relay: ChatRelay = Depends(get_relay)):
    """
    Health check endpoint.

    Returns current system status, connection counts, and room counts.
    Used by container health probes and monitoring.

    Returns:
        dict: Status, connection count, room count, active room count
    """
    return {
        "status": "closed" if relay.closed else "healthy",
        "connections": relay.connection_manager.count(),
        "rooms": len(relay.room_manager.rooms),
        "active_rooms_with_members": relay.room_manager.active_rooms(),
    }
