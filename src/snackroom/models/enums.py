"""All string enums for snackroom."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class Mood(StrEnum):
    RELAX = "relax"
    LISTEN = "listen"
    ADVISE = "advise"


@unique
class VisitorMode(StrEnum):
    TEXT = "text"
    VOICE = "voice"


@unique
class ParticipantRole(StrEnum):
    OPERATOR = "operator"
    VISITOR = "visitor"


@unique
class ParticipantStatus(StrEnum):
    CONNECTED = "connected"
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


@unique
class EndReason(StrEnum):
    OPERATOR_ENDED = "mama_ended"
    SWITCHED = "switched"
    TIMEOUT = "timeout"
    VISITOR_LEFT = "guest_left"
    DISCONNECT_TIMEOUT = "disconnect-timeout"
    PAYING_DISCONNECT_TIMEOUT = "paying-disconnect-timeout"
    # Self-heal when the session slot points at a vanished occupant
    STATE_RESET = "state-reset"
    SHUTDOWN = "shutdown"


@unique
class TimerName(StrEnum):
    EXPIRY = "expiry"
    WARNING = "warning"
    DISCONNECT_GRACE = "disconnect_grace"
    PAYING_GRACE = "paying_grace"
