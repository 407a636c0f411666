"""
User Model Module

This module defines the User model. Users are never registered directly; a row is
created the first time someone signs in through the external identity provider.
"""
from typing import Optional
from datetime import datetime
import uuid

from sqlalchemy import Index, func
from sqlmodel import SQLModel, Field

from app.core.clock import utcnow
from app.db.types import UTCDateTime


class User(SQLModel, table=True):
    """
    User model representing authenticated users in the system.

    Users are identified by UUID. The id is assigned once on first external
    authentication and never changes; the external_id ties the row back to the
    identity provider's account.

    Attributes:
        id: Unique identifier (UUID) automatically generated for each user
        email: Email address, stored lowercased and unique regardless of case
        name: Display name reported by the identity provider
        avatar_url: URL to the user's avatar image
        external_id: The identity provider's key for this account (unique)
        created_at: When the user first signed in
    """
    __tablename__ = "users"

    # Primary key - auto-generated UUID for global uniqueness
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    email: str = Field(unique=True, index=True, nullable=False)

    # Profile information
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    # Identity provider key (e.g. the Google profile id)
    external_id: Optional[str] = Field(default=None, unique=True, index=True)

    # Audit timestamp
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


# Collaborators are looked up by email case-insensitively, so two rows may never
# differ in case only
Index("ix_users_email_lower", func.lower(User.__table__.c.email), unique=True)
