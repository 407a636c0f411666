from __future__ import annotations

from app.realtime.registry import ConnectionRegistry

from .fakes import RecordingConnection


def test_broadcast_reaches_every_connection_of_one_user():
    registry = ConnectionRegistry()
    laptop, phone, other = RecordingConnection(), RecordingConnection(), RecordingConnection()
    registry.register("u1", laptop)
    registry.register("u1", phone)
    registry.register("u2", other)

    delivered = registry.broadcast("u1", "notification", {"id": 1})

    assert delivered == 2
    assert laptop.events == phone.events == [("notification", {"id": 1})]
    assert other.events == []


def test_offline_user_receives_nothing():
    registry = ConnectionRegistry()

    assert registry.broadcast("nobody", "notification", {"id": 1}) == 0
    assert registry.connection_count("nobody") == 0


def test_unregister_removes_only_that_connection():
    registry = ConnectionRegistry()
    laptop, phone = RecordingConnection(), RecordingConnection()
    registry.register("u1", laptop)
    registry.register("u1", phone)

    registry.unregister("u1", laptop)
    registry.broadcast("u1", "task-deleted", {"task_id": 5})

    assert laptop.events == []
    assert phone.events == [("task-deleted", {"task_id": 5})]
    assert registry.online_count() == 1

    registry.unregister("u1", phone)
    registry.unregister("u1", phone)  # already gone
    assert registry.online_count() == 0


def test_failing_connection_is_skipped():
    registry = ConnectionRegistry()
    broken, healthy = RecordingConnection(fail=True), RecordingConnection()
    registry.register("u1", broken)
    registry.register("u1", healthy)

    assert registry.broadcast("u1", "notification", {"id": 9}) == 1
    assert healthy.events == [("notification", {"id": 9})]
