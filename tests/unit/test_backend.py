"""Tests for the mock room backend."""

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from roomchat.backend import RoomService, create_app
from roomchat.backend.rooms import Room


@pytest.fixture
def client():
    return TestClient(create_app())


def issue(client, name="Ann"):
    return client.post("/api/token", json={"username": name}).json()


def test_token_for_blank_name_is_generated(client):
    data = issue(client, "  ")
    assert data["token"]
    assert data["username"].startswith("User_")


def test_facilitator_toggle(client):
    response = client.post("/room/demo/facilitator", params={"enable": "true"})
    assert response.json() == {"room_id": "demo", "facilitator_enabled": True}


def test_ai_participant_add_and_remove(client):
    assert client.post("/room/demo/ai_participant/Kai").json()["ai_participant_added"] == "Kai"
    duplicate = client.post("/room/demo/ai_participant/Kai")
    assert duplicate.status_code == 409
    assert "already active" in duplicate.json()["detail"]

    assert client.delete("/room/demo/ai_participant/Kai").json()["ai_participant_removed"] == "Kai"
    assert client.delete("/room/demo/ai_participant/Kai").status_code == 404


def test_stream_rejects_unknown_token(client):
    with pytest.raises(WebSocketDisconnect) as info:
        with client.websocket_connect("/ws/demo?token=bogus") as websocket:
            websocket.receive_text()
    assert info.value.code == 1008


def test_stream_join_and_ai_reply(client):
    token = issue(client)["token"]
    client.post("/room/demo/ai_participant/Kai")

    with client.websocket_connect(f"/ws/demo?token={token}") as websocket:
        join = websocket.receive_json()
        assert join["type"] == "join"
        assert join["chat_log"] == []
        assert join["active_ai_participants"] == ["Kai"]

        websocket.send_json({"message": "hello"})
        chat = websocket.receive_json()
        thinking = websocket.receive_json()
        reply = websocket.receive_json()

    assert chat["message"] == "hello"
    assert thinking["is_thinking"] is True
    assert thinking["username"] == "Kai"
    assert reply["type"] == "chat"
    assert reply["message"] == "Kai heard: hello"
    assert reply["is_thinking"] is False


def test_invalid_payload_gets_error_event(client):
    token = issue(client)["token"]
    with client.websocket_connect(f"/ws/demo?token={token}") as websocket:
        websocket.receive_json()
        websocket.send_text("not json")
        assert websocket.receive_json()["type"] == "error"


def test_room_roster_and_log_cap():
    room = Room(id="demo", max_log=2, facilitator_enabled=True, ai_participants=["Kai"])
    for i in range(3):
        room.record({"message": str(i)})

    assert [e["message"] for e in room.chat_log] == ["1", "2"]
    assert [u["id"] for u in room.roster()] == ["AIAssistantFacilitator", "AIAssistant_Kai"]
    assert [name for _, name in room.responders()] == ["Facilitator", "Kai"]


def test_disconnect_removes_member_and_broadcasts_leave():
    service = RoomService()
    client = TestClient(service.app)
    ann = issue(client, "Ann")["token"]
    bob = issue(client, "Bob")["token"]

    with client.websocket_connect(f"/ws/demo?token={ann}") as ann_ws:
        ann_ws.receive_json()
        with client.websocket_connect(f"/ws/demo?token={bob}") as bob_ws:
            bob_ws.receive_json()
            assert ann_ws.receive_json()["username"] == "Bob"

        leave = ann_ws.receive_json()
        assert leave["type"] == "leave"
        assert leave["username"] == "Bob"
        assert [u["name"] for u in leave["users"]] == ["Ann"]
        assert bob not in service.rooms["demo"].members
