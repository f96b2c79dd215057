"""Abstract base class for voice room providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from snackroom.models.session import VoiceCredentials, VoiceInfo


class VoiceRoomProvider(ABC):
    """Issues voice room tokens for the operator and the visitor."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def issue_token(
        self,
        *,
        as_owner: bool,
        user_name: str,
        room_name: str | None = None,
    ) -> VoiceCredentials:
        """Issue a token for one participant of a voice room.

        Args:
            as_owner: Whether the holder may moderate the room.
            user_name: Display name shown inside the room.
            room_name: Room to issue for; defaults to the provider's room.

        Raises:
            VoiceProviderError: The provider could not issue a token.
        """
        ...

    async def issue_session_tokens(self, room_name: str | None = None) -> VoiceInfo:
        """Issue the visitor and operator tokens for one session."""
        visitor = await self.issue_token(as_owner=False, user_name="guest", room_name=room_name)
        operator = await self.issue_token(as_owner=True, user_name="mama", room_name=room_name)
        return VoiceInfo(
            room_url=visitor.room_url,
            visitor_token=visitor.token,
            operator_token=operator.token,
        )

    async def close(self) -> None:  # noqa: B027
        """Release provider resources."""
