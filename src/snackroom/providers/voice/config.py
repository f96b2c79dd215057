"""Daily voice room provider configuration."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, SecretStr, field_validator

from snackroom.core.retry import RetryPolicy


class DailyConfig(BaseModel):
    """Configuration for the Daily meeting-token provider."""

    api_key: SecretStr
    room_url: str
    token_ttl_seconds: int = Field(default=30 * 60, gt=0)
    timeout: float = 10.0
    api_base: str = "https://api.daily.co/v1"
    retry: RetryPolicy = Field(
        default_factory=lambda: RetryPolicy(max_retries=2, base_delay_seconds=0.5)
    )

    @field_validator("room_url")
    @classmethod
    def validate_room_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError("room_url must be an http(s) URL")
        if not parsed.path.strip("/"):
            raise ValueError("room_url must include the room name as its path")
        return v

    @property
    def room_name(self) -> str:
        return urlparse(self.room_url).path.strip("/")

    @property
    def tokens_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/meeting-tokens"
