"""
User Endpoints Module

Profile lookup for the current user and email-to-user resolution, which the client
uses to turn typed-in collaborator emails into user ids before saving a task.
"""
from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlmodel import Session, select
from app.api import deps
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import EmailLookup, UserRead

router = APIRouter()


@router.get("/me", response_model=UserRead)
def read_user_me(
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Get the current authenticated user's profile.
    """
    return current_user


@router.post("/by-emails", response_model=List[UserRead])
def read_users_by_emails(
    lookup: EmailLookup,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Resolve a list of emails to existing users.

    Unknown emails are simply absent from the result; matching is case-insensitive.
    """
    emails = [e.strip().lower() for e in lookup.emails if e and e.strip()]
    if not emails:
        return []
    return db.exec(select(User).where(func.lower(User.email).in_(emails))).all()
