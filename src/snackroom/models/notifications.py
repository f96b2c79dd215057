"""Outbound notifications sent to the operator and visitors."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from snackroom.models.enums import EndReason, Mood, VisitorMode
from snackroom.models.session import VoiceCredentials


def _now() -> datetime:
    return datetime.now(UTC)


class SessionStarted(BaseModel):
    type: Literal["session-started"] = "session-started"
    handle: str
    mood: Mood | None = None
    mode: VisitorMode | None = None
    room_tag: str | None = None
    started_at: datetime
    max_duration_ms: int
    resumed: bool = False
    voice_info: VoiceCredentials | None = None
    voice_error: str | None = None


class SessionWarning(BaseModel):
    type: Literal["session-warning"] = "session-warning"
    remaining_ms: int


class SessionEnded(BaseModel):
    type: Literal["session-ended"] = "session-ended"
    reason: EndReason


class QueueEntry(BaseModel):
    handle: str
    mood: Mood | None = None
    mode: VisitorMode | None = None
    joined_at: datetime


class QueueUpdate(BaseModel):
    type: Literal["queue-update"] = "queue-update"
    queue: list[QueueEntry] = Field(default_factory=list)


class QueuePosition(BaseModel):
    type: Literal["queue-position"] = "queue-position"
    position: int
    size: int


class VisitorRegistered(BaseModel):
    type: Literal["visitor-registered"] = "visitor-registered"
    handle: str
    mood: Mood
    mode: VisitorMode
    joined_at: datetime


class ChatMessage(BaseModel):
    type: Literal["chat-message"] = "chat-message"
    sender: Literal["operator", "visitor"]
    text: str


class TipIntentNotice(BaseModel):
    type: Literal["tip-intent"] = "tip-intent"
    amount: int | None = None
    at: datetime = Field(default_factory=_now)


class TipConfirmed(BaseModel):
    type: Literal["tip-confirmed"] = "tip-confirmed"
    amount: int | None = None
    checkout_session_id: str
    at: datetime = Field(default_factory=_now)


class CheckoutReady(BaseModel):
    type: Literal["checkout-ready"] = "checkout-ready"
    checkout_session_id: str
    url: str


class SystemMessage(BaseModel):
    type: Literal["system-message"] = "system-message"
    text: str
    kind: str | None = None
    amount: int | None = None
    ts: datetime = Field(default_factory=_now)


class VoiceJoinReady(BaseModel):
    type: Literal["voice-join-ready"] = "voice-join-ready"
    handle: str
    room_url: str
    token: str
    resumed: bool = True


class VoiceJoinFailed(BaseModel):
    type: Literal["voice-join-failed"] = "voice-join-failed"
    message: str


class ErrorNotice(BaseModel):
    type: Literal["error"] = "error"
    code: str
    message: str


Notification = (
    SessionStarted
    | SessionWarning
    | SessionEnded
    | QueueUpdate
    | QueuePosition
    | VisitorRegistered
    | ChatMessage
    | TipIntentNotice
    | TipConfirmed
    | CheckoutReady
    | SystemMessage
    | VoiceJoinReady
    | VoiceJoinFailed
    | ErrorNotice
)
