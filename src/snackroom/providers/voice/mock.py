"""Mock voice room provider for testing."""

from __future__ import annotations

from snackroom.core.errors import VoiceProviderError
from snackroom.models.session import VoiceCredentials
from snackroom.providers.voice.base import VoiceRoomProvider


class MockVoiceProvider(VoiceRoomProvider):
    """Hands out predictable tokens, or fails on demand."""

    def __init__(
        self,
        room_url: str = "https://example.daily.co/snack",
        *,
        fail: bool = False,
    ) -> None:
        self.room_url = room_url
        self.fail = fail
        self.calls: list[dict[str, object]] = []

    @property
    def name(self) -> str:
        return "mock"

    async def issue_token(
        self,
        *,
        as_owner: bool,
        user_name: str,
        room_name: str | None = None,
    ) -> VoiceCredentials:
        self.calls.append({"as_owner": as_owner, "user_name": user_name, "room_name": room_name})
        if self.fail:
            raise VoiceProviderError("mock voice provider failure")
        role = "owner" if as_owner else "member"
        return VoiceCredentials(room_url=self.room_url, token=f"tok-{role}-{len(self.calls)}")
