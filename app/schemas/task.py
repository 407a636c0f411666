"""
Task request schemas.

Pydantic collects every field violation before FastAPI answers, so a bad payload
comes back as one 422 listing all of them.
"""
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, EmailStr, StrictBool, StringConstraints, field_validator, model_validator

from app.core.clock import as_utc
from app.models.task import TaskPriority, TaskStatus

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]


class CollaboratorIn(BaseModel):
    """
    One collaborator entry. The user is referenced either by id or by email;
    emails are resolved to ids before the task is built.
    """
    user: Optional[str] = None
    email: Optional[EmailStr] = None
    can_edit: StrictBool = False

    @model_validator(mode="after")
    def one_reference(self) -> "CollaboratorIn":
        if (self.user is None) == (self.email is None):
            raise ValueError("Provide exactly one of 'user' or 'email'")
        return self


class TaskCreate(BaseModel):
    title: Title
    description: Optional[Description] = None
    priority: TaskPriority = TaskPriority.LOW
    status: TaskStatus = TaskStatus.IN_PROGRESS
    due_date: Optional[datetime] = None
    collaborators: Optional[List[CollaboratorIn]] = None

    @field_validator("due_date")
    @classmethod
    def normalise_due_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return as_utc(v)


class TaskUpdate(TaskCreate):
    """
    Full-field update. Fields left out of the request are not touched; which
    fields were sent is read from ``model_fields_set``. Sending ``collaborators``
    at all (even ``null``) counts as an attempt to change them.
    """

    @field_validator("priority", "status", mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field may not be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"collaborators"})

    @property
    def touches_collaborators(self) -> bool:
        return "collaborators" in self.model_fields_set
