"""
Authentication Endpoints Module

Sign-in itself happens with the external identity provider; the callback glue
stores the issued JWT in the access_token cookie. These endpoints only report on
and end the resulting session.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from app.api import deps
from app.models.user import User
from app.schemas.user import UserRead

router = APIRouter()


@router.get("/me", response_model=UserRead)
def current_session_user(current_user: User = Depends(deps.get_current_user)):
    """
    Return the signed-in user, or 401 when there is no valid session.
    """
    return current_user


@router.get("/logout")
def logout():
    """
    Log out by clearing the authentication cookie.

    API clients can simply discard their bearer token.
    """
    response = JSONResponse({"status": "success", "detail": "Logged out"})
    response.delete_cookie("access_token")
    return response
