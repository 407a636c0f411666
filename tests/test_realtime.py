from __future__ import annotations

import pytest
from starlette.websockets import WebSocketDisconnect

from app.core.security import create_access_token

from .conftest import auth


def _socket(client, user):
    return client.websocket_connect(f"/ws?token={create_access_token(user.id)}")


def test_connection_without_token_is_closed(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws"):
            pass


def test_join_binds_to_authenticated_user(client, registry, c1):
    with _socket(client, c1) as ws:
        ws.send_json({"event": "join", "user_id": c1.id})
        assert ws.receive_json() == {"event": "joined", "data": {"user_id": c1.id}}
        assert registry.connection_count(c1.id) == 1

    assert registry.connection_count(c1.id) == 0


def test_join_without_user_id_uses_token_identity(client, registry, c1):
    with _socket(client, c1) as ws:
        ws.send_json({"event": "join"})
        assert ws.receive_json()["data"]["user_id"] == c1.id


def test_joining_someone_elses_room_is_refused(client, registry, owner, c1):
    with _socket(client, c1) as ws:
        ws.send_json({"event": "join", "user_id": owner.id})
        reply = ws.receive_json()

        assert reply["event"] == "error"
        assert registry.connection_count(owner.id) == 0
        assert registry.connection_count(c1.id) == 0


def test_unknown_event_gets_error(client, c1):
    with _socket(client, c1) as ws:
        ws.send_json({"event": "task-updated", "task": {}})
        assert ws.receive_json()["event"] == "error"


def test_task_events_reach_joined_collaborator(client, owner, c1):
    with _socket(client, c1) as ws:
        ws.send_json({"event": "join"})
        ws.receive_json()

        created = client.post(
            "/api/v1/tasks",
            json={"title": "Plan offsite", "collaborators": [{"user": c1.id}]},
            headers=auth(owner),
        ).json()

        assignment = ws.receive_json()
        info = ws.receive_json()
        assert assignment["event"] == info["event"] == "notification"
        assert assignment["data"]["type"] == "assignment"
        assert assignment["data"]["user_id"] == c1.id
        assert info["data"]["message"] == "Task 'Plan offsite' was created."

        client.delete(f"/api/v1/tasks/{created['id']}", headers=auth(owner))

        deleted = ws.receive_json()
        assert deleted == {"event": "task-deleted", "data": {"task_id": created["id"]}}
        assert ws.receive_json()["data"]["message"] == "Task 'Plan offsite' was deleted."


def test_task_update_reaches_open_dashboards(client, owner, c1):
    created = client.post(
        "/api/v1/tasks",
        json={"title": "Plan offsite", "collaborators": [{"user": c1.id, "can_edit": True}]},
        headers=auth(owner),
    ).json()

    with _socket(client, c1) as ws:
        ws.send_json({"event": "join"})
        ws.receive_json()

        client.put(f"/api/v1/tasks/{created['id']}", json={"title": "Book venue"}, headers=auth(owner))

        update = ws.receive_json()
        assert update["event"] == "task-updated"
        assert update["data"]["id"] == created["id"]
        assert update["data"]["title"] == "Book venue"
        assert ws.receive_json()["data"]["message"] == "Task 'Book venue' was edited."
