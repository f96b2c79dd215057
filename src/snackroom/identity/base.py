"""Abstract base class for the durable identity registry."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IdentityRegistry(ABC):
    """Maps transient connection handles to durable visitor ids and back.

    A visitor asserts its durable id itself; the registry only remembers
    which live handle currently speaks for it.  Methods are synchronous so
    the controller can call them inside a transition without yielding to
    the event loop.
    """

    @abstractmethod
    def bind(self, handle: str, durable_id: str) -> None:
        """Record *handle* as the latest connection for *durable_id*.

        Overwrites both directions; the newest handle wins.
        """
        ...

    @abstractmethod
    def resolve(self, handle: str) -> str | None:
        """Return the durable id bound to *handle*, if any."""
        ...

    @abstractmethod
    def latest_handle(self, durable_id: str) -> str | None:
        """Return the authoritative handle for *durable_id*, if any."""
        ...

    @abstractmethod
    def unbind(self, handle: str) -> None:
        """Forget *handle*.

        The reverse edge is only cleared when *handle* was still the latest
        one for its durable id.  The durable id itself stays bindable.
        """
        ...
