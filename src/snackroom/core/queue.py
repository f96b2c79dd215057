"""FIFO waiting queue of visitor connection handles."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from snackroom.models.notifications import QueueEntry
from snackroom.models.participant import Participant

logger = logging.getLogger("snackroom.queue")

ParticipantLookup = Callable[[str], Participant | None]


class WaitingQueue:
    """Ordered, de-duplicated list of waiting handles.

    Arrival order is the only ordering; there is no priority and no
    starvation handling.  Handles whose participant record has vanished are
    pruned lazily before every snapshot.
    """

    def __init__(self, lookup: ParticipantLookup) -> None:
        self._lookup = lookup
        self._handles: list[str] = []

    def enqueue(self, handle: str) -> bool:
        """Append *handle* unless already queued. Returns True if appended."""
        if handle in self._handles:
            return False
        self._handles.append(handle)
        return True

    def remove(self, handle: str) -> bool:
        """Remove *handle*. Returns True if it was queued."""
        try:
            self._handles.remove(handle)
        except ValueError:
            return False
        return True

    def prune(self, exists: Callable[[str], bool]) -> list[str]:
        """Drop every handle for which *exists* is false. Returns the dropped handles."""
        dropped = [h for h in self._handles if not exists(h)]
        if dropped:
            self._handles = [h for h in self._handles if h not in dropped]
            logger.debug("Pruned %d stale handle(s) from queue", len(dropped))
        return dropped

    def position_of(self, handle: str) -> int:
        """1-based position of *handle*, or 0 when it is not queued."""
        try:
            return self._handles.index(handle) + 1
        except ValueError:
            return 0

    def snapshot(self) -> list[QueueEntry]:
        """Pruned, ordered view of the queue for broadcast."""
        self.prune(lambda h: self._lookup(h) is not None)
        entries: list[QueueEntry] = []
        for handle in self._handles:
            participant = self._lookup(handle)
            if participant is None:
                continue
            entries.append(
                QueueEntry(
                    handle=handle,
                    mood=participant.mood,
                    mode=participant.mode,
                    joined_at=participant.joined_at,
                )
            )
        return entries

    def __contains__(self, handle: object) -> bool:
        return handle in self._handles

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._handles))

    def __len__(self) -> int:
        return len(self._handles)
