"""Configuration models and environment loading."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError, model_validator

from snackroom.core.errors import ConfigError
from snackroom.providers.payment.config import StripeConfig
from snackroom.providers.voice.config import DailyConfig

logger = logging.getLogger("snackroom.config")


class OrchestratorConfig(BaseModel):
    """Timing and room settings for the session controller.

    Attributes:
        session_max_seconds: Budget of one session before it times out.
        warning_lead_seconds: How long before expiry the warning fires.
        min_warning_delay_seconds: The warning never fires sooner than this
            after the session starts.
        disconnect_grace_seconds: How long a non-paying occupant may be
            disconnected before the session ends.
        paying_grace_seconds: The same window while a payment is in flight.
        operator_room_tag: Shared lobby tag every client joins.  Joining it
            never resumes a session.
    """

    session_max_seconds: float = Field(default=10 * 60, gt=0)
    warning_lead_seconds: float = Field(default=60, gt=0)
    min_warning_delay_seconds: float = Field(default=1.0, ge=0)
    disconnect_grace_seconds: float = Field(default=10, gt=0)
    paying_grace_seconds: float = Field(default=2 * 60, gt=0)
    operator_room_tag: str = "room_mama_fixed"

    @model_validator(mode="after")
    def _check_warning_lead(self) -> OrchestratorConfig:
        if self.warning_lead_seconds >= self.session_max_seconds:
            raise ValueError("warning_lead_seconds must be smaller than session_max_seconds")
        return self

    @property
    def session_max_ms(self) -> int:
        return int(self.session_max_seconds * 1000)

    @property
    def warning_delay_seconds(self) -> float:
        return max(
            self.min_warning_delay_seconds,
            self.session_max_seconds - self.warning_lead_seconds,
        )


class ServerConfig(BaseModel):
    """Top-level configuration for the websocket server."""

    host: str = "0.0.0.0"  # noqa: S104  # nosec B104
    port: int = Field(default=4000, ge=0, le=65535)
    allowed_origins: list[str] = Field(default_factory=list)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    daily: DailyConfig | None = None
    stripe: StripeConfig | None = None


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip().rstrip("/") for part in value.split(",") if part.strip()]


def load_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """Build a :class:`ServerConfig` from environment variables.

    Voice and payment support are optional; when their variables are
    missing the feature is disabled and a warning is logged.

    Raises:
        ConfigError: A variable is present but invalid.
    """
    env = os.environ if environ is None else environ

    orchestrator: dict[str, object] = {}
    for key, field_name in (
        ("SESSION_MAX_SECONDS", "session_max_seconds"),
        ("WARNING_LEAD_SECONDS", "warning_lead_seconds"),
        ("DISCONNECT_GRACE_SECONDS", "disconnect_grace_seconds"),
        ("PAYING_GRACE_SECONDS", "paying_grace_seconds"),
    ):
        if env.get(key):
            orchestrator[field_name] = env[key]
    if env.get("MAMA_ROOM_ID"):
        orchestrator["operator_room_tag"] = env["MAMA_ROOM_ID"]

    frontend_origin = (env.get("FRONTEND_ORIGIN") or "").rstrip("/")
    allowed_origins = _split(env.get("ALLOWED_ORIGINS"))
    if frontend_origin and frontend_origin not in allowed_origins:
        allowed_origins.append(frontend_origin)

    data: dict[str, object] = {
        "allowed_origins": allowed_origins,
        "orchestrator": orchestrator,
    }
    if env.get("HOST"):
        data["host"] = env["HOST"]
    if env.get("PORT"):
        data["port"] = env["PORT"]

    if env.get("DAILY_ROOM_URL") and env.get("DAILY_API_KEY"):
        data["daily"] = {"room_url": env["DAILY_ROOM_URL"], "api_key": env["DAILY_API_KEY"]}
    else:
        logger.warning("DAILY_ROOM_URL or DAILY_API_KEY missing: voice sessions degrade to text")

    if env.get("STRIPE_SECRET_KEY"):
        stripe: dict[str, object] = {"secret_key": env["STRIPE_SECRET_KEY"]}
        if env.get("STRIPE_WEBHOOK_SECRET"):
            stripe["webhook_secret"] = env["STRIPE_WEBHOOK_SECRET"]
        if frontend_origin:
            stripe["frontend_origin"] = frontend_origin
        data["stripe"] = stripe
    else:
        logger.warning("STRIPE_SECRET_KEY missing: tipping disabled")

    try:
        return ServerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
