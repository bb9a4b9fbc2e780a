# backend/api/routes/metrics.py
from fastapi import APIRouter, Depends

from api.routes.utils import get_relay
from services.chat_relay import ChatRelay

router = APIRouter()

@router.get("/metrics")
async def get_metrics(relay: ChatRelay = Depends(get_relay)):
    """
    Traffic metrics endpoint.

    Returns:
        dict: Message statistics (user messages, assistant calls and
              replies, messages/sec) and capacity (connections, rooms,
              active rooms)

    Example Response:
        {
            "total_messages": 120,
            "assistant_calls": 14,
            "assistant_replies": 13,
            "assistant_pending": 1,
            "uptime_hours": 0.5,
            "messages_per_second": 0.07,
            "concurrent_connections": 6,
            "total_rooms": 3,
            "active_rooms_with_members": 2
        }
    """
    stats = relay.stats()
    uptime_seconds = stats["uptime_seconds"]

    if uptime_seconds > 0:
        messages_per_second = stats["messages_sent"] / uptime_seconds
    else:
        messages_per_second = 0

    return {
        # Statistics
        "total_messages": stats["messages_sent"],
        "assistant_calls": stats["assistant_calls"],
        "assistant_replies": stats["assistant_replies"],
        "assistant_pending": stats["assistant_pending"],
        "uptime_hours": round(uptime_seconds / 3600, 2) if uptime_seconds > 0 else 0,
        "messages_per_second": round(messages_per_second, 2),

        # Capacity
        "concurrent_connections": stats["connections"],
        "total_rooms": stats["rooms"],
        "active_rooms_with_members": stats["active_rooms_with_members"],
    }
