# backend/api/routes/utils.py

from __future__ import annotations

from fastapi import Request

from services.chat_relay import ChatRelay


def get_relay(request: Request) -> ChatRelay:
    """
    FastAPI dependency returning the relay created at startup.

    Usage:
        @router.get("/health")
        async def health(relay: ChatRelay = Depends(get_relay)):
            ...
    """
    return request.app.state.relay
