"""
Task Model Module

This module defines the Task model and the TaskCollaborator junction table used to
share a task with other users. Every task has exactly one owner (Task.owner_id);
collaborators are tracked separately, each with its own edit permission.
"""
from enum import Enum
from typing import Optional, List
from datetime import datetime

from sqlmodel import SQLModel, Field, Relationship, AutoString

from app.core.clock import as_utc, utcnow
from app.db.types import UTCDateTime


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(str, Enum):
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    TIMED_OUT = "Timed Out"


class TaskCollaborator(SQLModel, table=True):
    """
    Junction table between Tasks and the Users they are shared with.

    The composite primary key keeps collaborators unique per task. The owner is
    never stored here.

    Attributes:
        task_id: Foreign key to the shared task
        user_id: Foreign key to the collaborating user
        can_edit: Whether this collaborator may modify the task's fields
    """
    __tablename__ = "task_collaborators"

    task_id: int = Field(foreign_key="tasks.id", primary_key=True)
    user_id: str = Field(foreign_key="users.id", primary_key=True)
    can_edit: bool = Field(default=False)


class TaskBase(SQLModel):
    """
    Base Task model containing common fields.
    """
    # Basic task information
    title: str = Field(nullable=False)
    description: Optional[str] = None

    # Aware UTC
    due_date: Optional[datetime] = Field(default=None, index=True, sa_type=UTCDateTime)

    priority: TaskPriority = Field(default=TaskPriority.LOW, sa_type=AutoString)
    status: TaskStatus = Field(default=TaskStatus.IN_PROGRESS, sa_type=AutoString)

    # Audit timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Task(TaskBase, table=True):
    """
    Task table model.
    """
    __tablename__ = "tasks"

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    # Ownership - set on creation, never reassigned
    owner_id: str = Field(foreign_key="users.id", index=True, nullable=False)

    collaborators: List["TaskCollaborator"] = Relationship(
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"}
    )

    def member_ids(self) -> List[str]:
        """Owner first, then collaborators. Everyone who can read the task."""
        return [self.owner_id] + [c.user_id for c in self.collaborators]


def effective_status(task: TaskBase, now: Optional[datetime] = None) -> TaskStatus:
    """
    Status as shown to users.

    A task whose due date has passed reads as Timed Out whatever its stored
    status. Nothing is written back; this is recomputed on every read.
    """
    now = as_utc(now or utcnow())
    if task.due_date is not None and as_utc(task.due_date) < now:
        return TaskStatus.TIMED_OUT
    return TaskStatus(task.status)


class CollaboratorRead(SQLModel):
    user_id: str
    can_edit: bool
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class TaskRead(TaskBase):
    """Schema for reading a task, with the display status already derived."""
    id: int
    owner_id: str
    effective_status: TaskStatus
    collaborators: List[CollaboratorRead] = []
