"""
Notification Model Module

Notifications are the durable record of every task event a user was told about.
Rows are only ever created by the NotificationDispatcher and only ever modified to
flip the read flag.
"""
from enum import Enum
from typing import Optional
from datetime import datetime

from sqlmodel import SQLModel, Field, AutoString

from app.core.clock import utcnow
from app.db.types import UTCDateTime


class NotificationType(str, Enum):
    ASSIGNMENT = "assignment"
    STATUS = "status"
    INVITATION = "invitation"
    DEADLINE = "deadline"
    INFO = "info"


class NotificationBase(SQLModel):
    user_id: str = Field(foreign_key="users.id", index=True, nullable=False)
    type: NotificationType = Field(sa_type=AutoString, nullable=False)
    message: str = Field(nullable=False)

    # Plain reference: the notification outlives a deleted task
    task_id: Optional[int] = Field(default=None, index=True)

    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Notification(NotificationBase, table=True):
    """
    Notification table model.
    """
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)


class NotificationRead(NotificationBase):
    """Schema for reading a notification; also the realtime payload."""
    id: int
