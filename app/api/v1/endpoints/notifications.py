from typing import List
from fastapi import APIRouter, Depends
from app.models.notification import NotificationRead
from app.models.user import User
from app.services.notifications import NotificationDispatcher
from app.api import deps

router = APIRouter()


@router.get("", response_model=List[NotificationRead])
def list_notifications(
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
    current_user: User = Depends(deps.get_current_user),
):
    """The caller's notifications, newest first."""
    return dispatcher.list_for(current_user)


# Declared before /{notification_id}/read so "read-all" is never taken for an id
@router.put("/read-all")
def mark_all_read(
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
    current_user: User = Depends(deps.get_current_user),
):
    updated = dispatcher.mark_all_unread(current_user)
    return {"status": "success", "updated": updated}


@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Mark one notification as read.

    A notification that belongs to someone else is reported as 404, same as a
    missing one.
    """
    return dispatcher.mark_one(current_user, notification_id)
