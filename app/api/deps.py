"""
API Dependencies Module

This module provides FastAPI dependency functions for authentication and for
wiring the service layer. Authentication accepts both bearer tokens (for API
clients) and the HTTP-only access_token cookie (for browser clients).
"""
from functools import lru_cache
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import ValidationError
from sqlmodel import Session

from app.core.config import settings
from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User
from app.realtime.registry import ConnectionRegistry, registry
from app.schemas.auth import TokenData
from app.services.email import Mailer, build_mailer
from app.services.notifications import NotificationDispatcher
from app.services.tasks import TaskService

# auto_error=False allows us to check cookies as a fallback
bearer_scheme = HTTPBearer(auto_error=False)


def strip_bearer(token: Optional[str]) -> Optional[str]:
    # Cookie format is "Bearer <token>"
    if token and token.startswith("Bearer "):
        return token[len("Bearer "):]
    return token


def resolve_user(db: Session, token: Optional[str]) -> Optional[User]:
    """
    Map a raw token to its user, or None when the token is missing, invalid,
    expired or names a user that no longer exists.
    """
    if not token:
        return None
    try:
        token_data = TokenData(sub=decode_access_token(token))
    except (JWTError, ValidationError):
        return None
    if not token_data.sub:
        return None
    return db.get(User, token_data.sub)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> User:
    """
    Dependency that retrieves and validates the current authenticated user.

    The Authorization header is checked first, then the access_token cookie.

    Raises:
        HTTPException 401: If no valid authentication token is provided
    """
    token = credentials.credentials if credentials else None
    if not token:
        token = strip_bearer(request.cookies.get("access_token"))

    user = resolve_user(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_registry() -> ConnectionRegistry:
    return registry


@lru_cache()
def get_mailer() -> Mailer:
    return build_mailer(settings)


def get_dispatcher(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    connections: ConnectionRegistry = Depends(get_registry),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, mailer, connections)


def get_task_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> TaskService:
    return TaskService(db, dispatcher)
