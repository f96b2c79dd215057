"""Data models for snackroom."""

from snackroom.models.commands import (
    Accept,
    Command,
    CommandParseError,
    ConnectionClosed,
    ConnectionOpened,
    CreateCheckout,
    EndSession,
    JoinRoom,
    Leave,
    PaymentCompleted,
    RegisterIntent,
    SendMessage,
    TimerFired,
    TipIntent,
    VoiceJoinRequest,
    parse_command,
)
from snackroom.models.enums import (
    EndReason,
    Mood,
    ParticipantRole,
    ParticipantStatus,
    TimerName,
    VisitorMode,
)
from snackroom.models.notifications import (
    ChatMessage,
    CheckoutReady,
    ErrorNotice,
    Notification,
    QueueEntry,
    QueuePosition,
    QueueUpdate,
    SessionEnded,
    SessionStarted,
    SessionWarning,
    SystemMessage,
    TipConfirmed,
    TipIntentNotice,
    VisitorRegistered,
    VoiceJoinFailed,
    VoiceJoinReady,
)
from snackroom.models.participant import Participant
from snackroom.models.session import Session, VoiceCredentials, VoiceInfo

__all__ = [
    "Accept",
    "ChatMessage",
    "CheckoutReady",
    "Command",
    "CommandParseError",
    "ConnectionClosed",
    "ConnectionOpened",
    "CreateCheckout",
    "EndReason",
    "EndSession",
    "ErrorNotice",
    "JoinRoom",
    "Leave",
    "Mood",
    "Notification",
    "Participant",
    "ParticipantRole",
    "ParticipantStatus",
    "PaymentCompleted",
    "QueueEntry",
    "QueuePosition",
    "QueueUpdate",
    "RegisterIntent",
    "SendMessage",
    "Session",
    "SessionEnded",
    "SessionStarted",
    "SessionWarning",
    "SystemMessage",
    "TimerFired",
    "TimerName",
    "TipConfirmed",
    "TipIntent",
    "TipIntentNotice",
    "VisitorMode",
    "VisitorRegistered",
    "VoiceCredentials",
    "VoiceInfo",
    "VoiceJoinFailed",
    "VoiceJoinReady",
    "VoiceJoinRequest",
    "parse_command",
]
