"""Tests for the connection registry and best-effort delivery."""
import pytest

from models.models import PresencePayload
from services.connection_manager import ConnectionManager
from .conftest import FakeSocket


def test_register_generates_guest_name():
    manager = ConnectionManager()
    connection = manager.register("c1", FakeSocket().send_json)

    assert connection.username.startswith("Guest_")
    assert 0 <= int(connection.username.split("_")[1]) <= 999
    assert connection.room_id is None
    assert manager.count() == 1


def test_set_and_remove_session():
    manager = ConnectionManager()
    manager.register("c1", FakeSocket().send_json, "alice")

    manager.set_session("c1", "alicia", "general")
    session = manager.get_session("c1")
    assert (session.username, session.room_id) == ("alicia", "general")

    assert manager.set_session("missing", "bob", "general") is None
    assert manager.remove_session("c1") is session
    assert manager.remove_session("c1") is None
    assert manager.get_session("c1") is None


@pytest.mark.asyncio
async def test_send_wraps_payload_in_event_frame():
    manager = ConnectionManager()
    socket = FakeSocket()
    manager.register("c1", socket.send_json)

    assert await manager.send("c1", "userJoined", PresencePayload(username="bob"))
    assert socket.frames == [{"event": "userJoined", "data": {"username": "bob"}}]


@pytest.mark.asyncio
async def test_send_to_unknown_connection_is_false():
    assert await ConnectionManager().send("nobody", "userLeft", {"username": "x"}) is False


@pytest.mark.asyncio
async def test_broadcast_survives_a_dead_member():
    manager = ConnectionManager()
    alive_a, dead, alive_b = FakeSocket(), FakeSocket(fail=True), FakeSocket()
    manager.register("a", alive_a.send_json)
    manager.register("dead", dead.send_json)
    manager.register("b", alive_b.send_json)

    delivered = await manager.broadcast(["a", "dead", "b"], "userLeft", {"username": "carol"})

    assert delivered == 2
    assert alive_a.events("userLeft") == [{"username": "carol"}]
    assert alive_b.events("userLeft") == [{"username": "carol"}]


@pytest.mark.asyncio
async def test_broadcast_excludes_actor():
    manager = ConnectionManager()
    actor, other = FakeSocket(), FakeSocket()
    manager.register("actor", actor.send_json)
    manager.register("other", other.send_json)

    delivered = await manager.broadcast({"actor", "other"}, "userJoined", {"username": "x"}, exclude="actor")

    assert delivered == 1
    assert actor.frames == []
    assert other.events("userJoined") == [{"username": "x"}]
