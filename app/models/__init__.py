from .user import User
from .task import Task, TaskCollaborator, TaskPriority, TaskStatus
from .notification import Notification, NotificationType

__all__ = [
    "User",
    "Task", "TaskCollaborator", "TaskPriority", "TaskStatus",
    "Notification", "NotificationType",
]
