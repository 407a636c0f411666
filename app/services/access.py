"""
Task access rules.

Pure predicates over a task and a caller. The owner can do everything; a
collaborator can always read and can write only when their entry has can_edit.
Collaborator membership itself is the owner's alone to change.
"""
from typing import Optional

from sqlmodel import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.models.task import Task, TaskCollaborator
from app.models.user import User


def _entry(user: User, task: Task) -> Optional[TaskCollaborator]:
    for collaborator in task.collaborators:
        if collaborator.user_id == user.id:
            return collaborator
    return None


def is_owner(user: User, task: Task) -> bool:
    return task.owner_id == user.id


def can_read(user: User, task: Task) -> bool:
    return is_owner(user, task) or _entry(user, task) is not None


def can_write(user: User, task: Task) -> bool:
    if is_owner(user, task):
        return True
    entry = _entry(user, task)
    return entry is not None and bool(entry.can_edit)


def can_manage_collaborators(user: User, task: Task) -> bool:
    return is_owner(user, task)


def get_readable_task(db: Session, user: User, task_id: int) -> Task:
    """
    Load a task the caller is allowed to see.

    Raises NotFoundError when the task does not exist and ForbiddenError when
    it exists but is not shared with the caller.
    """
    task = db.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    if not can_read(user, task):
        raise ForbiddenError("Not allowed to view this task")
    return task
