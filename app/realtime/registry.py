"""
Live connection registry.

Every realtime connection is filed under exactly one addressing key: the id of the
user it belongs to. Sending to a user means sending to each of that user's
connections. Nothing is queued for users who are offline; the persisted
Notification row is what they see on their next fetch.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)


class ConnectionHandle(Protocol):
    """Anything that can push one event down to a single client."""

    def send(self, event: str, payload: Dict[str, Any]) -> None: ...


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rooms: Dict[str, Set[ConnectionHandle]] = {}

    def register(self, user_id: str, handle: ConnectionHandle) -> None:
        with self._lock:
            self._rooms.setdefault(user_id, set()).add(handle)
        logger.debug("realtime connection registered user_id=%s", user_id)

    def unregister(self, user_id: str, handle: ConnectionHandle) -> None:
        with self._lock:
            room = self._rooms.get(user_id)
            if not room:
                return
            room.discard(handle)
            if not room:
                del self._rooms[user_id]
        logger.debug("realtime connection unregistered user_id=%s", user_id)

    def connection_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._rooms.get(user_id, ()))

    def online_count(self) -> int:
        """Number of users with at least one live connection."""
        with self._lock:
            return len(self._rooms)

    def broadcast(self, user_id: str, event: str, payload: Dict[str, Any]) -> int:
        """
        Push an event to every live connection of one user.

        Returns how many connections accepted it. A failing connection is logged
        and skipped so the rest still receive the event.
        """
        with self._lock:
            handles = list(self._rooms.get(user_id, ()))

        delivered = 0
        for handle in handles:
            try:
                handle.send(event, payload)
            except Exception:
                logger.exception("realtime push failed user_id=%s event=%s", user_id, event)
                continue
            delivered += 1
        return delivered


# Process-wide registry shared by HTTP handlers, the websocket endpoint and the
# deadline scanner.
registry = ConnectionRegistry()
