"""
Domain Errors Module

Exceptions raised by the service layer. They carry no HTTP knowledge;
app.main registers handlers that translate each one into a response.
"""
from typing import Dict, List, Optional, Sequence


class TaskShareError(Exception):
    """Base class for all domain errors."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(TaskShareError):
    """The addressed task or notification does not exist for this caller."""


class ForbiddenError(TaskShareError):
    """The caller is authenticated but lacks the required relationship to the task."""


class CollaboratorNotFoundError(NotFoundError):
    """
    One or more collaborator references did not resolve to a user.

    Every unresolved email and user id is listed, not just the first.
    """

    def __init__(self, emails: Sequence[str] = (), user_ids: Sequence[str] = ()):
        self.emails = list(emails)
        self.user_ids = list(user_ids)
        parts = []
        if self.emails:
            parts.append(f"emails: {', '.join(self.emails)}")
        if self.user_ids:
            parts.append(f"user ids: {', '.join(self.user_ids)}")
        super().__init__(f"Unknown collaborators ({'; '.join(parts)})")


class ValidationFailedError(TaskShareError):
    """A payload passed schema validation but breaks a task invariant."""

    def __init__(self, errors: List[Dict[str, str]], detail: Optional[str] = None):
        super().__init__(detail or "Validation failed")
        self.errors = errors
