"""
Task Mutation Engine

Create, update and delete tasks, and work out who has to hear about it. Each
operation first decides what changed (status flip, collaborators added or removed),
commits the change, and only then hands the resulting events to the
NotificationDispatcher.

Collaborators are resolved in two phases: every reference in the payload (email
or user id) is looked up first, and the task is only built once all of them
resolved. Any miss fails the whole request with one CollaboratorNotFoundError.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, or_
from sqlmodel import Session, select, col

from app.core.clock import utcnow
from app.core.errors import CollaboratorNotFoundError, ForbiddenError, NotFoundError, ValidationFailedError
from app.models.notification import NotificationType
from app.models.task import CollaboratorRead, Task, TaskCollaborator, TaskRead, TaskStatus, effective_status
from app.models.user import User
from app.schemas.task import CollaboratorIn, TaskCreate, TaskUpdate
from app.services import access
from app.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


def resolve_collaborators(
    db: Session, owner_id: str, entries: Optional[Sequence[CollaboratorIn]]
) -> Dict[str, bool]:
    """
    Map collaborator references to ``{user_id: can_edit}``.

    Duplicate references to the same user collapse to the last entry. Raises
    CollaboratorNotFoundError listing every email and id that matched nobody,
    and ValidationFailedError if the owner lists themselves.
    """
    entries = list(entries or [])
    emails = [str(e.email) for e in entries if e.email is not None]
    user_ids = [e.user for e in entries if e.user is not None]

    users_by_email: Dict[str, User] = {}
    if emails:
        lowered = [e.lower() for e in emails]
        for user in db.exec(select(User).where(func.lower(User.email).in_(lowered))).all():
            users_by_email[user.email.lower()] = user

    known_ids = set()
    if user_ids:
        known_ids = set(db.exec(select(User.id).where(col(User.id).in_(user_ids))).all())

    missing_emails = [e for e in emails if e.lower() not in users_by_email]
    missing_ids = [uid for uid in user_ids if uid not in known_ids]
    if missing_emails or missing_ids:
        raise CollaboratorNotFoundError(emails=missing_emails, user_ids=missing_ids)

    resolved: Dict[str, bool] = {}
    for entry in entries:
        uid = entry.user if entry.user is not None else users_by_email[str(entry.email).lower()].id
        resolved.pop(uid, None)
        resolved[uid] = entry.can_edit

    if owner_id in resolved:
        raise ValidationFailedError(
            [{"field": "collaborators", "message": "The owner cannot be listed as a collaborator"}]
        )
    return resolved


class TaskService:
    def __init__(self, db: Session, dispatcher: NotificationDispatcher):
        self.db = db
        self.dispatcher = dispatcher

    # === Reads ===

    def list_for(self, user: User) -> List[Task]:
        """Tasks the user owns or collaborates on."""
        shared_ids = select(TaskCollaborator.task_id).where(TaskCollaborator.user_id == user.id)
        statement = (
            select(Task)
            .where(or_(Task.owner_id == user.id, col(Task.id).in_(shared_ids)))
            .order_by(col(Task.id))
        )
        return list(self.db.exec(statement).all())

    def get_for(self, user: User, task_id: int) -> Task:
        return access.get_readable_task(self.db, user, task_id)

    def present(self, task: Task, now: Optional[datetime] = None) -> TaskRead:
        return self.present_many([task], now=now)[0]

    def present_many(self, tasks: Sequence[Task], now: Optional[datetime] = None) -> List[TaskRead]:
        """
        Build the read model for tasks. Every response that carries a task goes
        through here, so the Timed Out override is applied the same way everywhere.
        """
        now = now or utcnow()
        user_ids = {c.user_id for t in tasks for c in t.collaborators}
        users = {}
        if user_ids:
            users = {u.id: u for u in self.db.exec(select(User).where(col(User.id).in_(user_ids))).all()}

        out = []
        for task in tasks:
            collaborators = []
            for c in task.collaborators:
                u = users.get(c.user_id)
                collaborators.append(CollaboratorRead(
                    user_id=c.user_id,
                    can_edit=c.can_edit,
                    email=u.email if u else None,
                    name=u.name if u else None,
                    avatar_url=u.avatar_url if u else None,
                ))
            out.append(TaskRead(
                id=task.id,
                owner_id=task.owner_id,
                title=task.title,
                description=task.description,
                due_date=task.due_date,
                priority=task.priority,
                status=task.status,
                created_at=task.created_at,
                updated_at=task.updated_at,
                effective_status=effective_status(task, now),
                collaborators=collaborators,
            ))
        return out

    # === Mutations ===

    def create(self, owner: User, payload: TaskCreate) -> Task:
        resolved = resolve_collaborators(self.db, owner.id, payload.collaborators)

        task = Task(
            title=payload.title,
            description=payload.description,
            priority=payload.priority.value,
            status=payload.status.value,
            due_date=payload.due_date,
            owner_id=owner.id,
        )
        for user_id, can_edit in resolved.items():
            task.collaborators.append(TaskCollaborator(user_id=user_id, can_edit=can_edit))

        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info("task created id=%s owner=%s collaborators=%d", task.id, owner.id, len(resolved))

        if resolved:
            self.dispatcher.notify(
                list(resolved),
                NotificationType.ASSIGNMENT,
                self._assignment_message(task, owner),
                task_id=task.id,
            )
        self.dispatcher.notify(
            task.member_ids(), NotificationType.INFO, f"Task '{task.title}' was created.", task_id=task.id
        )
        return task

    def update(self, caller: User, task_id: int, payload: TaskUpdate) -> Task:
        task = self.db.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task not found")
        if not access.can_write(caller, task):
            raise ForbiddenError("Not allowed to edit this task")
        if payload.touches_collaborators and not access.can_manage_collaborators(caller, task):
            raise ForbiddenError("Only the owner can modify collaborators")

        changes = payload.changes()

        # Deltas are taken against the stored state before anything is applied
        previous_status = TaskStatus(task.status)
        status_changed = "status" in changes and TaskStatus(changes["status"]) != previous_status

        added: List[str] = []
        removed: List[str] = []
        resolved: Dict[str, bool] = {}
        if payload.touches_collaborators:
            resolved = resolve_collaborators(self.db, task.owner_id, payload.collaborators)
            previous_ids = [c.user_id for c in task.collaborators]
            added = [uid for uid in resolved if uid not in previous_ids]
            removed = [uid for uid in previous_ids if uid not in resolved]

        for field, value in changes.items():
            if field in ("priority", "status"):
                value = value.value
            setattr(task, field, value)

        if payload.touches_collaborators:
            for entry in list(task.collaborators):
                if entry.user_id in resolved:
                    entry.can_edit = resolved[entry.user_id]
                else:
                    task.collaborators.remove(entry)
            for uid in added:
                task.collaborators.append(TaskCollaborator(user_id=uid, can_edit=resolved[uid]))

        task.updated_at = utcnow()
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info(
            "task updated id=%s by=%s status_changed=%s added=%d removed=%d",
            task.id, caller.id, status_changed, len(added), len(removed),
        )

        members = task.member_ids()
        self.dispatcher.announce(members, "task-updated", self.present(task).model_dump(mode="json"))
        if status_changed:
            self.dispatcher.notify(
                members,
                NotificationType.STATUS,
                f"Task '{task.title}' status updated to {TaskStatus(task.status).value}",
                task_id=task.id,
            )
        if added:
            self.dispatcher.notify(
                added, NotificationType.ASSIGNMENT, self._assignment_message(task, caller), task_id=task.id
            )
        if removed:
            self.dispatcher.notify(
                removed,
                NotificationType.INFO,
                f"You have been removed from the task: {task.title}",
                task_id=task.id,
                subject="Removed from Task",
            )
        self.dispatcher.notify(members, NotificationType.INFO, f"Task '{task.title}' was edited.", task_id=task.id)
        return task

    def delete(self, caller: User, task_id: int) -> None:
        task = self.db.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task not found")
        if not access.is_owner(caller, task):
            raise ForbiddenError("Only the owner can delete this task")

        # Snapshot before the rows are gone
        members = task.member_ids()
        title = task.title

        self.db.delete(task)
        self.db.commit()
        logger.info("task deleted id=%s by=%s", task_id, caller.id)

        self.dispatcher.announce(members, "task-deleted", {"task_id": task_id})
        self.dispatcher.notify(members, NotificationType.INFO, f"Task '{title}' was deleted.", task_id=task_id)

    @staticmethod
    def _assignment_message(task: Task, assigned_by: User) -> str:
        return f"You have been assigned to the task: {task.title} by {assigned_by.name or 'someone'}."
