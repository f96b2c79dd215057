"""Process-wide orchestration state, held in one object."""

from __future__ import annotations

from dataclasses import dataclass, field

from snackroom.core.queue import WaitingQueue
from snackroom.identity.base import IdentityRegistry
from snackroom.identity.memory import InMemoryIdentityRegistry
from snackroom.models.enums import EndReason
from snackroom.models.participant import Participant
from snackroom.models.session import Session


@dataclass
class OrchestratorState:
    """Everything the controller mutates.

    Passed to the controller explicitly so independent instances can run
    side by side (one per test, for example).  Nothing here survives a
    process restart.
    """

    participants: dict[str, Participant] = field(default_factory=dict)
    identities: IdentityRegistry = field(default_factory=InMemoryIdentityRegistry)
    session: Session | None = None
    operator_handle: str | None = None
    pending_endings: dict[str, EndReason] = field(default_factory=dict)
    queue: WaitingQueue = field(init=False)

    def __post_init__(self) -> None:
        self.queue = WaitingQueue(self.participants.get)

    def is_occupant(self, handle: str | None) -> bool:
        """Whether *handle* is the connection currently holding the session."""
        return (
            handle is not None
            and self.session is not None
            and self.session.connection_handle == handle
        )

    def is_operator(self, handle: str | None) -> bool:
        return handle is not None and handle == self.operator_handle

    def occupant(self) -> Participant | None:
        if self.session is None:
            return None
        return self.participants.get(self.session.connection_handle)
