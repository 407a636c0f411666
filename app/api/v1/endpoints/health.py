from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel import Session
from typing import Any
from app.api import deps
from app.db.session import get_db
from app.realtime.registry import ConnectionRegistry

router = APIRouter()

@router.get("", response_model=dict[str, Any])
def health_check(
    db: Session = Depends(get_db),
    connections: ConnectionRegistry = Depends(deps.get_registry),
) -> Any:
    """
    Health check endpoint. Touches the database so a dead connection shows up here.
    """
    db.connection().execute(text("SELECT 1"))
    return {"status": "ok", "realtime_users": connections.online_count()}
