# backend/api/routes/root.py

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.

    Returns basic info about the API and its features.
    """
    return {
        "message": "CodeCollab Room Chat Relay",
        "version": "1.0",
        "architecture": "single process, in-memory rooms",
        "features": ["rooms", "presence", "history_replay", "assistant_replies"],
        "endpoints": {
            "websocket": "/ws",
            "rooms": "/rooms",
            "health": "/health",
            "metrics": "/metrics",
        },
    }
