"""Tests for the Daily voice provider."""

from __future__ import annotations

import json
import time
from unittest.mock import AsyncMock

import httpx
import pytest

from snackroom.core.errors import VoiceProviderError
from snackroom.core.retry import RetryPolicy
from snackroom.providers.voice.config import DailyConfig
from snackroom.providers.voice.daily import DailyVoiceProvider
from snackroom.providers.voice.mock import MockVoiceProvider

TOKENS_URL = "https://api.daily.co/v1/meeting-tokens"


def _config(**overrides: object) -> DailyConfig:
    values: dict[str, object] = {
        "api_key": "daily-key",
        "room_url": "https://team.daily.co/snack",
        "retry": RetryPolicy(max_retries=2, base_delay_seconds=0.001),
    }
    values.update(overrides)
    return DailyConfig(**values)  # type: ignore[arg-type]


def _provider_with(handler, config: DailyConfig | None = None) -> DailyVoiceProvider:  # type: ignore[no-untyped-def]
    provider = DailyVoiceProvider(config or _config())
    provider._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return provider


class TestDailyVoiceProvider:
    async def test_issue_token(self) -> None:
        provider = DailyVoiceProvider(_config())
        mock_response = httpx.Response(
            200,
            json={"token": "tok-123"},
            request=httpx.Request("POST", TOKENS_URL),
        )
        provider._client = AsyncMock()
        provider._client.post = AsyncMock(return_value=mock_response)

        creds = await provider.issue_token(as_owner=True, user_name="mama")

        assert creds.token == "tok-123"
        assert creds.room_url == "https://team.daily.co/snack"

        call = provider._client.post.call_args
        assert call.args[0] == TOKENS_URL
        assert call.kwargs["headers"]["Authorization"] == "Bearer daily-key"
        props = call.kwargs["json"]["properties"]
        assert props["room_name"] == "snack"
        assert props["user_name"] == "mama"
        assert props["is_owner"] is True
        assert props["exp"] > time.time() + 1700

    async def test_session_tokens(self) -> None:
        seen: list[bool] = []

        def handler(request: httpx.Request) -> httpx.Response:
            owner = json.loads(request.content)["properties"]["is_owner"]
            seen.append(owner)
            return httpx.Response(200, json={"token": "owner" if owner else "guest"})

        provider = _provider_with(handler)
        info = await provider.issue_session_tokens()
        await provider.close()

        assert seen == [False, True]
        assert info.visitor_token == "guest"
        assert info.operator_token == "owner"
        assert info.for_operator().room_url == "https://team.daily.co/snack"

    async def test_other_room(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"token": "t"})

        provider = _provider_with(handler)
        creds = await provider.issue_token(as_owner=False, user_name="guest", room_name="other")

        assert creds.room_url == "https://team.daily.co/other"

    async def test_retries_then_succeeds(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls < 3:
                return httpx.Response(503, json={"error": "busy"})
            return httpx.Response(200, json={"token": "late"})

        provider = _provider_with(handler)
        creds = await provider.issue_token(as_owner=False, user_name="guest")

        assert creds.token == "late"
        assert calls == 3

    async def test_gives_up_after_retries(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(401, json={"error": "authentication-error"})

        provider = _provider_with(handler)
        with pytest.raises(VoiceProviderError, match="http_401"):
            await provider.issue_token(as_owner=False, user_name="guest")
        assert calls == 3

    async def test_missing_token(self) -> None:
        provider = _provider_with(
            lambda request: httpx.Response(200, json={}),
            _config(retry=RetryPolicy(max_retries=0)),
        )

        with pytest.raises(VoiceProviderError, match="no token"):
            await provider.issue_token(as_owner=False, user_name="guest")

    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        provider = _provider_with(handler, _config(retry=RetryPolicy(max_retries=0)))

        with pytest.raises(VoiceProviderError, match="timed out"):
            await provider.issue_token(as_owner=False, user_name="guest")


class TestMockVoiceProvider:
    async def test_records_calls(self) -> None:
        voice = MockVoiceProvider()

        info = await voice.issue_session_tokens()

        assert info.visitor_token == "tok-member-1"
        assert info.operator_token == "tok-owner-2"
        assert len(voice.calls) == 2

    async def test_failure(self) -> None:
        voice = MockVoiceProvider(fail=True)

        with pytest.raises(VoiceProviderError):
            await voice.issue_token(as_owner=False, user_name="guest")
