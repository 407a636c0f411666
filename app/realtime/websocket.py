"""
Realtime WebSocket endpoint.

A client connects to /ws with its access token (``?token=`` or the access_token
cookie) and sends ``{"event": "join"}``. The connection is then filed under the
authenticated user's id and receives that user's ``notification`` and
``task-deleted`` events.

A join that names a different user id than the one the token belongs to is
refused; the addressing key always comes from the authenticated identity.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from app.api import deps
from app.db.session import engine
from app.models.user import User
from app.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


class WebSocketConnection:
    """
    Registry handle for one socket.

    send() may be called from any thread (request workers, the deadline scanner);
    the actual write is scheduled onto the loop that owns the socket and not
    awaited.
    """

    def __init__(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop):
        self.websocket = websocket
        self.loop = loop

    def send(self, event: str, payload: Dict[str, Any]) -> None:
        future = asyncio.run_coroutine_threadsafe(
            self.websocket.send_json({"event": event, "data": payload}), self.loop
        )
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("websocket send failed: %s", exc)


def _authenticate(token: Optional[str]) -> Optional[User]:
    with Session(engine) as db:
        return deps.resolve_user(db, token)


async def _send_error(websocket: WebSocket, detail: str) -> None:
    await websocket.send_json({"event": "error", "data": {"detail": detail}})


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: Optional[str] = None,
    connections: ConnectionRegistry = Depends(deps.get_registry),
):
    if not token:
        token = deps.strip_bearer(websocket.cookies.get("access_token"))
    user = await run_in_threadpool(_authenticate, token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    handle = WebSocketConnection(websocket, asyncio.get_running_loop())
    joined = False
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await _send_error(websocket, "Messages must be JSON objects")
                continue
            if not isinstance(message, dict) or message.get("event") != "join":
                await _send_error(websocket, "Unsupported event")
                continue

            claimed = message.get("user_id")
            if claimed is not None and str(claimed) != user.id:
                logger.warning("refused join: user_id=%s claimed room %s", user.id, claimed)
                await _send_error(websocket, "Cannot join another user's room")
                continue

            if not joined:
                connections.register(user.id, handle)
                joined = True
            await websocket.send_json({"event": "joined", "data": {"user_id": user.id}})
    except WebSocketDisconnect:
        pass
    finally:
        if joined:
            connections.unregister(user.id, handle)
