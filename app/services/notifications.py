"""
Notification Dispatcher

Turns a task event into, for each target user: a persisted Notification row, an
email attempt and a realtime push. The row is the durable record; email and push
are best-effort and their failures never reach the caller.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import Session, select, col

from app.core.errors import NotFoundError
from app.models.notification import Notification, NotificationRead, NotificationType
from app.models.user import User
from app.realtime.registry import ConnectionRegistry
from app.services.email import Mailer

logger = logging.getLogger(__name__)

EMAIL_SUBJECTS = {
    NotificationType.ASSIGNMENT: "New Task Assignment",
    NotificationType.STATUS: "Task Status Updated",
    NotificationType.INVITATION: "Task Invitation",
    NotificationType.DEADLINE: "Task Deadline Reminder",
    NotificationType.INFO: "Task Update",
}


def _unique(user_ids: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for uid in user_ids:
        if uid and uid not in seen:
            seen.add(uid)
            out.append(uid)
    return out


class NotificationDispatcher:
    def __init__(self, db: Session, mailer: Mailer, registry: ConnectionRegistry):
        self.db = db
        self.mailer = mailer
        self.registry = registry

    def notify(
        self,
        user_ids: Iterable[str],
        type: NotificationType,
        message: str,
        task_id: Optional[int] = None,
        subject: Optional[str] = None,
    ) -> List[Notification]:
        """
        Create one notification per target user and fan it out.

        Targets are de-duplicated within this call only. Every call creates new
        rows; nothing is merged with earlier notifications. The email subject
        follows the notification type unless one is given.
        """
        type = NotificationType(type)
        subject = subject or EMAIL_SUBJECTS[type]
        created = []
        for user_id in _unique(user_ids):
            notification = Notification(
                user_id=user_id, type=type.value, message=message, task_id=task_id
            )
            self.db.add(notification)
            self.db.commit()
            self.db.refresh(notification)
            created.append(notification)

            self._email(user_id, subject, message)
            self._push(user_id, notification)

        logger.info(
            "dispatched %d %s notification(s) task_id=%s", len(created), type.value, task_id
        )
        return created

    def announce(self, user_ids: Iterable[str], event: str, payload: Dict[str, Any]) -> None:
        """Realtime-only event with no persisted record (e.g. task-deleted)."""
        for user_id in _unique(user_ids):
            self.registry.broadcast(user_id, event, payload)

    def _email(self, user_id: str, subject: str, message: str) -> None:
        user = self.db.get(User, user_id)
        if user is None or not user.email:
            return
        try:
            self.mailer.send(user.email, subject, message)
        except Exception:
            logger.exception("email for user_id=%s could not be queued", user_id)

    def _push(self, user_id: str, notification: Notification) -> None:
        payload = NotificationRead.model_validate(notification).model_dump(mode="json")
        try:
            self.registry.broadcast(user_id, "notification", payload)
        except Exception:
            logger.exception("realtime push for user_id=%s failed", user_id)

    # === Read state ===

    def list_for(self, user: User) -> List[Notification]:
        statement = (
            select(Notification)
            .where(Notification.user_id == user.id)
            .order_by(col(Notification.created_at).desc(), col(Notification.id).desc())
        )
        return list(self.db.exec(statement).all())

    def mark_one(self, user: User, notification_id: int) -> Notification:
        notification = self.db.get(Notification, notification_id)
        # Someone else's notification is reported exactly like a missing one
        if notification is None or notification.user_id != user.id:
            raise NotFoundError("Notification not found")
        notification.read = True
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_unread(self, user: User) -> int:
        """Mark every unread notification of the user as read. Returns how many changed."""
        unread = self.db.exec(
            select(Notification).where(
                Notification.user_id == user.id, Notification.read == False  # noqa: E712
            )
        ).all()
        for notification in unread:
            notification.read = True
            self.db.add(notification)
        self.db.commit()
        return len(unread)
