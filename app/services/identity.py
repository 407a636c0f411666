"""
External identity bookkeeping.

The OAuth handshake itself happens elsewhere; once the provider has vouched for a
profile, the callback glue calls get_or_create_external_user and then issues a
token with app.core.security.create_access_token.
"""
import logging

from sqlmodel import Session, select

from app.models.user import User
from app.schemas.user import ExternalProfile

logger = logging.getLogger(__name__)


def get_or_create_external_user(db: Session, profile: ExternalProfile) -> User:
    """
    Return the user tied to this external account, creating it on first sign-in.

    The user's id is fixed at creation; later sign-ins never change it. The email
    is stored lowercased.
    """
    user = db.exec(select(User).where(User.external_id == profile.external_id)).first()
    if user:
        return user

    user = User(
        external_id=profile.external_id,
        email=str(profile.email).lower(),
        name=profile.name,
        avatar_url=profile.avatar_url,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("created user id=%s on first external sign-in", user.id)
    return user
