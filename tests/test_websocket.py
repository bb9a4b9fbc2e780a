"""End-to-end tests for the /ws event protocol."""
import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def client(test_settings):
    with TestClient(create_app(test_settings)) as client:
        yield client


def join(ws, room_id, username):
    ws.send_json({"event": "joinRoom", "data": {"roomId": room_id, "username": username}})


def chat(ws, text, room, username):
    ws.send_json({"event": "chatMessage", "data": {"text": text, "room": room, "username": username}})


def test_general_room_scenario(client):
    with client.websocket_connect("/ws") as ws_a:
        join(ws_a, "general", "A")
        assert ws_a.receive_json() == {"event": "roomInfo", "data": {"online": 1, "messages": []}}

        with client.websocket_connect("/ws") as ws_b:
            join(ws_b, "general", "B")
            assert ws_b.receive_json() == {"event": "roomInfo", "data": {"online": 2, "messages": []}}
            assert ws_a.receive_json() == {"event": "userJoined", "data": {"username": "B"}}

            chat(ws_a, "hi", "general", "A")
            for ws in (ws_a, ws_b):
                frame = ws.receive_json()
                assert frame["event"] == "newMessage"
                assert frame["data"]["username"] == "A"
                assert frame["data"]["text"] == "hi"
                assert frame["data"]["type"] == "user"

            chat(ws_b, "@ai help", "general", "B")
            for ws in (ws_a, ws_b):
                user_frame = ws.receive_json()
                assert user_frame["data"]["type"] == "user"
                assert user_frame["data"]["text"] == "@ai help"
                reply = ws.receive_json()
                assert reply["event"] == "newMessage"
                assert reply["data"]["type"] == "assistant"
                assert reply["data"]["username"] == "CodeGuard AI"

        assert ws_a.receive_json() == {"event": "userLeft", "data": {"username": "B"}}


def test_history_is_replayed_to_late_joiner(client):
    with client.websocket_connect("/ws") as ws_a:
        join(ws_a, "general", "A")
        ws_a.receive_json()
        chat(ws_a, "first", "general", "A")
        ws_a.receive_json()

        with client.websocket_connect("/ws") as ws_b:
            join(ws_b, "general", "B")
            info = ws_b.receive_json()["data"]
            assert info["online"] == 2
            assert [m["text"] for m in info["messages"]] == ["first"]


def test_mismatched_chat_message_is_dropped_silently(client):
    with client.websocket_connect("/ws") as ws:
        join(ws, "general", "A")
        ws.receive_json()

        chat(ws, "sneaky", "random", "A")
        chat(ws, "spoofed", "general", "Mallory")
        chat(ws, "legit", "general", "A")

        frame = ws.receive_json()
        assert frame["event"] == "newMessage"
        assert frame["data"]["text"] == "legit"


def test_chat_before_join_is_dropped_silently(client):
    with client.websocket_connect("/ws") as ws:
        chat(ws, "hello", "general", "A")
        join(ws, "general", "A")
        assert ws.receive_json()["event"] == "roomInfo"


def test_empty_room_id_is_reported(client):
    with client.websocket_connect("/ws") as ws:
        join(ws, "   ", "A")
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["code"] == "InvalidRoom"


def test_malformed_frames_get_error_events(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("{not json")
        assert ws.receive_json()["data"]["code"] == "InvalidJSON"

        ws.send_json({"event": "dance", "data": {}})
        assert ws.receive_json()["data"]["code"] == "UnknownEvent"

        ws.send_json({"event": "joinRoom", "data": {"username": "A"}})
        assert ws.receive_json()["data"]["code"] == "InvalidPayload"

        # The connection is still usable
        join(ws, "general", "A")
        assert ws.receive_json()["event"] == "roomInfo"


def test_switching_rooms_over_the_wire(client):
    with client.websocket_connect("/ws") as ws_a, client.websocket_connect("/ws") as ws_b:
        join(ws_a, "general", "A")
        ws_a.receive_json()
        join(ws_b, "general", "B")
        ws_b.receive_json()
        ws_a.receive_json()  # userJoined B

        join(ws_b, "random", "B")
        assert ws_b.receive_json() == {"event": "roomInfo", "data": {"online": 1, "messages": []}}
        assert ws_a.receive_json() == {"event": "userLeft", "data": {"username": "B"}}


def test_padded_room_and_name_claims_are_accepted(client):
    with client.websocket_connect("/ws") as ws:
        join(ws, " general ", " A ")
        assert ws.receive_json()["event"] == "roomInfo"

        chat(ws, "hi", " general ", " A ")
        frame = ws.receive_json()
        assert frame["event"] == "newMessage"
        assert frame["data"]["username"] == "A"
        assert frame["data"]["text"] == "hi"
