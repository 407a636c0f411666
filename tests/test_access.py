from __future__ import annotations

import pytest

from app.core.errors import ForbiddenError, NotFoundError
from app.models.task import Task, TaskCollaborator
from app.models.user import User
from app.services import access


def _user(uid: str) -> User:
    return User(id=uid, email=f"{uid}@example.com")


def _task(owner: str, collaborators: dict[str, bool]) -> Task:
    task = Task(id=1, title="Ship it", owner_id=owner)
    for uid, can_edit in collaborators.items():
        task.collaborators.append(TaskCollaborator(task_id=1, user_id=uid, can_edit=can_edit))
    return task


TASK_MEMBERS = {"editor": True, "viewer": False}


@pytest.mark.parametrize(
    "uid, readable, writable",
    [
        ("owner", True, True),
        ("editor", True, True),
        ("viewer", True, False),
        ("stranger", False, False),
    ],
)
def test_read_write_truth_table(uid, readable, writable):
    task = _task("owner", TASK_MEMBERS)
    user = _user(uid)

    assert access.can_read(user, task) is readable
    assert access.can_write(user, task) is writable


def test_only_owner_manages_collaborators():
    task = _task("owner", TASK_MEMBERS)

    assert access.can_manage_collaborators(_user("owner"), task)
    assert not access.can_manage_collaborators(_user("editor"), task)
    assert not access.can_manage_collaborators(_user("viewer"), task)


def test_task_without_collaborators_is_owner_only():
    task = _task("owner", {})

    assert access.can_write(_user("owner"), task)
    assert not access.can_read(_user("anyone"), task)


def test_get_readable_task_distinguishes_missing_from_hidden(db, service, owner, c1, stranger):
    from app.schemas.task import TaskCreate

    task = service.create(owner, TaskCreate(title="Quarterly report", collaborators=[{"user": c1.id}]))

    assert access.get_readable_task(db, c1, task.id).id == task.id
    with pytest.raises(ForbiddenError):
        access.get_readable_task(db, stranger, task.id)
    with pytest.raises(NotFoundError):
        access.get_readable_task(db, owner, 9999)
