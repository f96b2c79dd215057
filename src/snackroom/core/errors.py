"""Exception hierarchy for snackroom."""

from __future__ import annotations


class SnackroomError(Exception):
    """Base exception for all snackroom errors."""


class ConfigError(SnackroomError):
    """Configuration is missing or invalid."""


class StaleHandleError(SnackroomError):
    """A command referenced a connection handle or durable id that is gone."""


class DuplicateTimerError(SnackroomError):
    """A named timer is already live on the session."""


class VoiceProviderError(SnackroomError):
    """The voice room provider failed to issue a token."""


class PaymentError(SnackroomError):
    """The payment provider rejected or failed a request."""
