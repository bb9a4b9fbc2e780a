# backend/main.py

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import Settings, settings as default_settings
from core.logging import setup_logging, get_logger
from services.chat_relay import ChatRelay
from api.routes import root, health, metrics, rooms
from api import websocket as websocket_module

# Configure logging first
setup_logging()
logger = get_logger(__name__)


def create_app(settings: Settings = default_settings) -> FastAPI:
    app = FastAPI(title="CodeCollab Room Chat Relay")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # REST routes
    app.include_router(root.router)
    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(rooms.router)

    # WebSocket routes
    app.include_router(websocket_module.router)

    @app.on_event("startup")
    async def startup_event():
        app.state.relay = ChatRelay.from_settings(settings)
        logger.info("🚀 Chat relay starting (assistant backend: %s)", settings.ASSISTANT_BACKEND)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.relay.close()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=default_settings.HOST, port=default_settings.PORT)
