"""Voice room providers."""

from snackroom.providers.voice.base import VoiceRoomProvider
from snackroom.providers.voice.config import DailyConfig
from snackroom.providers.voice.daily import DailyVoiceProvider
from snackroom.providers.voice.mock import MockVoiceProvider

__all__ = [
    "DailyConfig",
    "DailyVoiceProvider",
    "MockVoiceProvider",
    "VoiceRoomProvider",
]
