"""Notification fan-out to the operator and visitor connections."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine, Iterable
from typing import Any

from snackroom.models.notifications import Notification

logger = logging.getLogger("snackroom.dispatcher")

SendFn = Callable[[str, Notification], Coroutine[Any, Any, None]]


class NotificationDispatcher:
    """Connection registry plus fan-out helpers.

    Holds no orchestration state: it only knows which send callback
    belongs to which handle and which handles joined which room tag.
    A connection whose sends fail ``_MAX_CONSECUTIVE_ERRORS`` times in a
    row is dropped.
    """

    _MAX_CONSECUTIVE_ERRORS = 3

    def __init__(self) -> None:
        self._connections: dict[str, SendFn] = {}
        self._error_counts: dict[str, int] = {}
        self._rooms: dict[str, set[str]] = {}

    # -- Registry --------------------------------------------------------------

    def register_connection(self, handle: str, send_fn: SendFn) -> None:
        """Register the send callback for a live connection."""
        self._connections[handle] = send_fn
        self._error_counts.pop(handle, None)

    def unregister_connection(self, handle: str) -> None:
        """Forget a connection and every room membership it held."""
        self._connections.pop(handle, None)
        self._error_counts.pop(handle, None)
        for members in self._rooms.values():
            members.discard(handle)
        self._rooms = {tag: members for tag, members in self._rooms.items() if members}

    def is_connected(self, handle: str | None) -> bool:
        return handle is not None and handle in self._connections

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def join_room(self, room_tag: str, handle: str) -> None:
        self._rooms.setdefault(room_tag, set()).add(handle)

    def room_members(self, room_tag: str) -> set[str]:
        return set(self._rooms.get(room_tag, ()))

    # -- Delivery --------------------------------------------------------------

    async def send(self, handle: str | None, message: Notification) -> bool:
        """Send *message* to one connection. Returns False if it was not delivered."""
        if handle is None:
            return False
        send_fn = self._connections.get(handle)
        if send_fn is None:
            logger.debug("Dropping %s for unknown connection %s", message.type, handle)
            return False
        try:
            await send_fn(handle, message)
        except Exception:
            logger.exception("Send of %s failed for connection %s", message.type, handle)
            self._handle_send_error(handle)
            return False
        self._error_counts.pop(handle, None)
        return True

    async def to_many(self, handles: Iterable[str], message: Notification) -> int:
        delivered = 0
        for handle in list(handles):
            if await self.send(handle, message):
                delivered += 1
        return delivered

    async def to_room(self, room_tag: str, message: Notification) -> int:
        """Send *message* to every connection that joined *room_tag*."""
        return await self.to_many(sorted(self.room_members(room_tag)), message)

    def _handle_send_error(self, handle: str) -> None:
        """Increment error count and remove connection after threshold."""
        consecutive = self._error_counts.get(handle, 0) + 1
        self._error_counts[handle] = consecutive
        if consecutive >= self._MAX_CONSECUTIVE_ERRORS:
            logger.warning(
                "Connection %s removed after %d consecutive failures",
                handle,
                consecutive,
            )
            self.unregister_connection(handle)
        else:
            logger.warning(
                "Send failed for connection %s (attempt %d/%d)",
                handle,
                consecutive,
                self._MAX_CONSECUTIVE_ERRORS,
            )
