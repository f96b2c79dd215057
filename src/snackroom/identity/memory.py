"""In-memory identity registry."""

from __future__ import annotations

import logging

from snackroom.identity.base import IdentityRegistry

logger = logging.getLogger("snackroom.identity")


class InMemoryIdentityRegistry(IdentityRegistry):
    """Two plain dicts; lives as long as the process."""

    def __init__(self) -> None:
        self._by_handle: dict[str, str] = {}
        self._by_durable_id: dict[str, str] = {}

    def bind(self, handle: str, durable_id: str) -> None:
        previous = self._by_handle.get(handle)
        if previous is not None and previous != durable_id:
            # The handle switched identities; drop its claim on the old one.
            if self._by_durable_id.get(previous) == handle:
                del self._by_durable_id[previous]
        self._by_handle[handle] = durable_id
        superseded = self._by_durable_id.get(durable_id)
        self._by_durable_id[durable_id] = handle
        if superseded is not None and superseded != handle:
            logger.debug("Durable id %s moved from %s to %s", durable_id, superseded, handle)

    def resolve(self, handle: str) -> str | None:
        return self._by_handle.get(handle)

    def latest_handle(self, durable_id: str) -> str | None:
        return self._by_durable_id.get(durable_id)

    def unbind(self, handle: str) -> None:
        durable_id = self._by_handle.pop(handle, None)
        if durable_id is not None and self._by_durable_id.get(durable_id) == handle:
            del self._by_durable_id[durable_id]

    def __len__(self) -> int:
        return len(self._by_handle)
