"""Inbound commands and internal lifecycle events.

Every state change in the controller is driven by one of these models.
Wire commands arrive as JSON frames ``{"type": ..., ...}`` and are parsed
with :func:`parse_command`; the remaining events are raised internally by
the transport, the timer table and the payment webhook.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from snackroom.models.enums import Mood, ParticipantRole, TimerName, VisitorMode

# -- Visitor commands ----------------------------------------------------------


class JoinRoom(BaseModel):
    type: Literal["join-room"] = "join-room"
    room_tag: str
    durable_id: str | None = None


class RegisterIntent(BaseModel):
    type: Literal["register-intent"] = "register-intent"
    durable_id: str = Field(min_length=1)
    mood: Mood
    mode: VisitorMode = VisitorMode.TEXT
    room_tag: str | None = None


class Leave(BaseModel):
    type: Literal["leave"] = "leave"


class SendMessage(BaseModel):
    """Chat text; relayed to the other side of the active session."""

    type: Literal["send-message"] = "send-message"
    text: str = Field(min_length=1)


class TipIntent(BaseModel):
    type: Literal["tip-intent"] = "tip-intent"
    amount: int | None = None


class CreateCheckout(BaseModel):
    """Ask the payment provider for a tip checkout page."""

    type: Literal["create-checkout"] = "create-checkout"
    amount: int = Field(gt=0)


# -- Operator commands ---------------------------------------------------------


class Accept(BaseModel):
    type: Literal["accept"] = "accept"
    handle: str = Field(min_length=1)


class EndSession(BaseModel):
    type: Literal["end-session"] = "end-session"


class VoiceJoinRequest(BaseModel):
    type: Literal["voice-join-request"] = "voice-join-request"


WireCommand = Annotated[
    JoinRoom
    | RegisterIntent
    | Leave
    | SendMessage
    | TipIntent
    | CreateCheckout
    | Accept
    | EndSession
    | VoiceJoinRequest,
    Field(discriminator="type"),
]

# -- Internal events -----------------------------------------------------------


class ConnectionOpened(BaseModel):
    type: Literal["connection-opened"] = "connection-opened"
    role: ParticipantRole = ParticipantRole.VISITOR


class ConnectionClosed(BaseModel):
    type: Literal["connection-closed"] = "connection-closed"
    reason: str | None = None


class TimerFired(BaseModel):
    type: Literal["timer-fired"] = "timer-fired"
    name: TimerName
    session_id: str


class PaymentCompleted(BaseModel):
    """A confirmed payment reported by the payment provider's webhook."""

    type: Literal["payment-completed"] = "payment-completed"
    checkout_session_id: str
    amount: int | None = None
    room_tag: str | None = None
    correlation_id: str | None = None


Command = (
    JoinRoom
    | RegisterIntent
    | Leave
    | SendMessage
    | TipIntent
    | CreateCheckout
    | Accept
    | EndSession
    | VoiceJoinRequest
    | ConnectionOpened
    | ConnectionClosed
    | TimerFired
    | PaymentCompleted
)


class CommandParseError(ValueError):
    """Raised when an inbound frame is not a recognised command."""


_wire_adapter: TypeAdapter[Any] = TypeAdapter(WireCommand)


def parse_command(raw: str | bytes | dict[str, Any]) -> Command:
    """Parse one inbound frame into a wire command.

    Raises:
        CommandParseError: The frame is not JSON, has no known ``type``, or
            its fields fail validation.
    """
    try:
        data = json.loads(raw) if isinstance(raw, str | bytes) else raw
    except json.JSONDecodeError as exc:
        raise CommandParseError(f"invalid JSON: {exc.msg}") from exc
    except UnicodeDecodeError as exc:
        raise CommandParseError(f"invalid encoding: {exc.reason}") from exc
    if not isinstance(data, dict):
        raise CommandParseError("frame must be a JSON object")
    try:
        command: Command = _wire_adapter.validate_python(data)
    except ValidationError as exc:
        raise CommandParseError(str(exc)) from exc
    return command
