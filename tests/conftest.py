"""Test configuration and fixtures."""
import asyncio

import pytest

from core.config import Settings
from services.chat_relay import ChatRelay


class FakeSocket:
    """Collects the frames a connection would have received."""

    def __init__(self, fail: bool = False, yielding: bool = False):
        self.frames = []
        self.fail = fail
        # Suspend on every send like a real transport
        self.yielding = yielding

    async def send_json(self, frame: dict) -> None:
        if self.yielding:
            await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("socket is closed")
        self.frames.append(frame)

    def events(self, name: str) -> list:
        return [frame["data"] for frame in self.frames if frame["event"] == name]

    def clear(self) -> None:
        self.frames.clear()


class FakeResponder:
    """Records prompts; replies immediately unless a test installs a gate."""

    def __init__(self, reply: str = "Try turning it off and on again"):
        self.reply = reply
        self.calls = []
        self.gate = None
        self.closed = False

    async def generate_reply(self, text: str) -> str:
        self.calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        return self.reply

    async def aclose(self) -> None:
        self.closed = True


def connect(relay: ChatRelay, username: str = None, yielding: bool = False):
    """Register a fake connection, returns (conn_id, socket)."""
    socket = FakeSocket(yielding=yielding)
    conn_id = relay.connect(socket.send_json, username)
    return conn_id, socket


@pytest.fixture
def responder():
    return FakeResponder()


@pytest.fixture
def relay(responder):
    return ChatRelay(responder=responder, history_limit=30)


@pytest.fixture
def test_settings():
    """Settings with an instant canned assistant."""
    settings = Settings()
    settings.ASSISTANT_BACKEND = "canned"
    settings.ASSISTANT_MIN_DELAY = 0.0
    settings.ASSISTANT_MAX_DELAY = 0.0
    settings.HISTORY_LIMIT = 30
    settings.ROOM_ID_MAX_LENGTH = 64
    settings.ASSISTANT_NAME = "CodeGuard AI"
    settings.CORS_ORIGINS = ["http://localhost:5000"]
    return settings
