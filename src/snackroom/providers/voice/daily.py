"""Daily voice room provider: issues meeting tokens via the REST API."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse, urlunparse

from snackroom.core.errors import VoiceProviderError
from snackroom.core.retry import retry_with_backoff
from snackroom.models.session import VoiceCredentials
from snackroom.providers.voice.base import VoiceRoomProvider
from snackroom.providers.voice.config import DailyConfig

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger("snackroom.providers.daily")


class DailyVoiceProvider(VoiceRoomProvider):
    """Voice provider backed by Daily meeting tokens."""

    def __init__(self, config: DailyConfig) -> None:
        try:
            import httpx as _httpx
        except ImportError as exc:
            raise ImportError(
                "httpx is required for DailyVoiceProvider. "
                "Install it with: pip install snackroom"
            ) from exc
        self._config = config
        self._httpx = _httpx
        self._client: httpx.AsyncClient = _httpx.AsyncClient(timeout=config.timeout)

    @property
    def name(self) -> str:
        return "daily"

    async def issue_token(
        self,
        *,
        as_owner: bool,
        user_name: str,
        room_name: str | None = None,
    ) -> VoiceCredentials:
        room = room_name or self._config.room_name
        token = await retry_with_backoff(
            self._request_token,
            self._config.retry,
            room,
            user_name,
            as_owner,
            retry_on=(VoiceProviderError,),
        )
        return VoiceCredentials(room_url=self._room_url(room), token=token)

    async def _request_token(self, room: str, user_name: str, as_owner: bool) -> str:
        payload: dict[str, Any] = {
            "properties": {
                "room_name": room,
                "user_name": user_name or "guest",
                "is_owner": as_owner,
                "exp": int(time.time()) + self._config.token_ttl_seconds,
            }
        }
        headers = {
            "Authorization": f"Bearer {self._config.api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }
        try:
            resp = await self._client.post(self._config.tokens_url, json=payload, headers=headers)
            resp.raise_for_status()
            data: dict[str, Any] = resp.json()
        except self._httpx.TimeoutException as exc:
            raise VoiceProviderError("Daily token request timed out") from exc
        except self._httpx.HTTPStatusError as exc:
            raise VoiceProviderError(
                f"Daily token error: http_{exc.response.status_code}"
            ) from exc
        except self._httpx.HTTPError as exc:
            raise VoiceProviderError(f"Daily token request failed: {exc}") from exc

        token = data.get("token")
        if not token:
            raise VoiceProviderError("Daily token response had no token")
        logger.debug("Issued Daily token for room %s (owner=%s)", room, as_owner)
        return str(token)

    def _room_url(self, room: str) -> str:
        if room == self._config.room_name:
            return self._config.room_url
        parsed = urlparse(self._config.room_url)
        return urlunparse(parsed._replace(path=f"/{room}"))

    async def close(self) -> None:
        await self._client.aclose()
