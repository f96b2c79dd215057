"""Stripe payment provider configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr


class StripeConfig(BaseModel):
    """Configuration for Stripe Checkout tipping."""

    secret_key: SecretStr
    webhook_secret: SecretStr | None = None
    currency: str = "jpy"
    frontend_origin: str = "http://localhost:5173"
    timeout: float = 10.0
    webhook_tolerance_seconds: int = Field(default=300, ge=0)
    api_base: str = "https://api.stripe.com/v1"

    @property
    def checkout_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/checkout/sessions"
