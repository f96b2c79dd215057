"""snackroom - one operator, one visitor at a time, over websockets."""

from snackroom._version import __version__
from snackroom.config import OrchestratorConfig, ServerConfig, load_config
from snackroom.core.controller import SessionController
from snackroom.core.dispatcher import NotificationDispatcher, SendFn
from snackroom.core.errors import (
    ConfigError,
    DuplicateTimerError,
    PaymentError,
    SnackroomError,
    StaleHandleError,
    VoiceProviderError,
)
from snackroom.core.queue import WaitingQueue
from snackroom.core.retry import RetryPolicy, retry_with_backoff
from snackroom.core.state import OrchestratorState
from snackroom.core.timers import SessionTimers
from snackroom.identity import IdentityRegistry, InMemoryIdentityRegistry
from snackroom.models import (
    Accept,
    ChatMessage,
    CheckoutReady,
    Command,
    CommandParseError,
    ConnectionClosed,
    ConnectionOpened,
    CreateCheckout,
    EndReason,
    EndSession,
    ErrorNotice,
    JoinRoom,
    Leave,
    Mood,
    Notification,
    Participant,
    ParticipantRole,
    ParticipantStatus,
    PaymentCompleted,
    QueueEntry,
    QueuePosition,
    QueueUpdate,
    RegisterIntent,
    SendMessage,
    Session,
    SessionEnded,
    SessionStarted,
    SessionWarning,
    SystemMessage,
    TimerFired,
    TimerName,
    TipConfirmed,
    TipIntent,
    TipIntentNotice,
    VisitorMode,
    VisitorRegistered,
    VoiceCredentials,
    VoiceInfo,
    VoiceJoinFailed,
    VoiceJoinReady,
    VoiceJoinRequest,
    parse_command,
)
from snackroom.providers.payment import (
    CheckoutSession,
    MockPaymentProvider,
    PaymentProvider,
    StripeConfig,
    StripePaymentProvider,
)
from snackroom.providers.voice import (
    DailyConfig,
    DailyVoiceProvider,
    MockVoiceProvider,
    VoiceRoomProvider,
)
from snackroom.telemetry import (
    ConsoleTelemetryProvider,
    MockTelemetryProvider,
    NoopTelemetryProvider,
    TelemetryProvider,
)

__all__ = [
    # Controller
    "SessionController",
    "OrchestratorState",
    "NotificationDispatcher",
    "SendFn",
    "SessionTimers",
    "WaitingQueue",
    "IdentityRegistry",
    "InMemoryIdentityRegistry",
    # Config
    "OrchestratorConfig",
    "ServerConfig",
    "load_config",
    "DailyConfig",
    "StripeConfig",
    "RetryPolicy",
    "retry_with_backoff",
    # Errors
    "SnackroomError",
    "ConfigError",
    "DuplicateTimerError",
    "PaymentError",
    "StaleHandleError",
    "VoiceProviderError",
    # Models
    "EndReason",
    "Mood",
    "Participant",
    "ParticipantRole",
    "ParticipantStatus",
    "Session",
    "TimerName",
    "VisitorMode",
    "VoiceCredentials",
    "VoiceInfo",
    # Commands
    "Accept",
    "Command",
    "CommandParseError",
    "ConnectionClosed",
    "ConnectionOpened",
    "CreateCheckout",
    "EndSession",
    "JoinRoom",
    "Leave",
    "PaymentCompleted",
    "RegisterIntent",
    "SendMessage",
    "TimerFired",
    "TipIntent",
    "VoiceJoinRequest",
    "parse_command",
    # Notifications
    "ChatMessage",
    "CheckoutReady",
    "ErrorNotice",
    "Notification",
    "QueueEntry",
    "QueuePosition",
    "QueueUpdate",
    "SessionEnded",
    "SessionStarted",
    "SessionWarning",
    "SystemMessage",
    "TipConfirmed",
    "TipIntentNotice",
    "VisitorRegistered",
    "VoiceJoinFailed",
    "VoiceJoinReady",
    # Providers
    "CheckoutSession",
    "DailyVoiceProvider",
    "MockPaymentProvider",
    "MockVoiceProvider",
    "PaymentProvider",
    "StripePaymentProvider",
    "VoiceRoomProvider",
    "ConsoleTelemetryProvider",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "TelemetryProvider",
    "__version__",
]
