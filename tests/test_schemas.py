from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.models.task import TaskPriority, TaskStatus
from app.schemas.task import CollaboratorIn, TaskCreate, TaskUpdate


def test_create_defaults():
    task = TaskCreate(title="Plan offsite")

    assert task.priority == TaskPriority.LOW
    assert task.status == TaskStatus.IN_PROGRESS
    assert task.collaborators is None


@pytest.mark.parametrize("entry", [{}, {"user": "u1", "email": "carl@example.com"}])
def test_collaborator_needs_exactly_one_reference(entry):
    with pytest.raises(ValidationError):
        CollaboratorIn(**entry)


def test_can_edit_must_be_a_real_boolean():
    assert CollaboratorIn(user="u1", can_edit=True).can_edit is True
    with pytest.raises(ValidationError):
        CollaboratorIn(user="u1", can_edit="yes")


def test_due_date_normalised_to_utc():
    task = TaskCreate(title="Plan offsite", due_date=datetime(2030, 1, 1, 12, tzinfo=timezone(timedelta(hours=2))))

    assert task.due_date == datetime(2030, 1, 1, 10, tzinfo=timezone.utc)
    assert task.due_date.utcoffset() == timedelta(0)


def test_naive_due_date_is_taken_as_utc():
    task = TaskCreate(title="Plan offsite", due_date=datetime(2030, 1, 1, 10))

    assert task.due_date == datetime(2030, 1, 1, 10, tzinfo=timezone.utc)


def test_update_tracks_sent_fields():
    update = TaskUpdate(title="Renamed", status="Completed")

    assert update.changes() == {"title": "Renamed", "status": TaskStatus.COMPLETED}
    assert update.touches_collaborators is False
    assert TaskUpdate(title="Renamed", collaborators=None).touches_collaborators is True


def test_update_rejects_null_status_and_priority():
    with pytest.raises(ValidationError) as exc:
        TaskUpdate(title="Renamed", status=None, priority=None)

    assert {e["loc"][0] for e in exc.value.errors()} == {"status", "priority"}
