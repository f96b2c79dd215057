"""Stripe payment provider: tip checkouts via the Stripe REST API."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from snackroom.core.errors import PaymentError
from snackroom.models.commands import PaymentCompleted
from snackroom.providers.payment.base import CheckoutSession, PaymentProvider, validate_amount
from snackroom.providers.payment.config import StripeConfig

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger("snackroom.providers.stripe")

CHECKOUT_COMPLETED = "checkout.session.completed"


class StripePaymentProvider(PaymentProvider):
    """Payment provider using Stripe Checkout Sessions."""

    def __init__(self, config: StripeConfig) -> None:
        try:
            import httpx as _httpx
        except ImportError as exc:
            raise ImportError(
                "httpx is required for StripePaymentProvider. "
                "Install it with: pip install snackroom"
            ) from exc
        self._config = config
        self._httpx = _httpx
        self._client: httpx.AsyncClient = _httpx.AsyncClient(timeout=config.timeout)

    @property
    def name(self) -> str:
        return "stripe"

    async def create_checkout(
        self,
        amount: int,
        room_tag: str | None,
        correlation_id: str | None,
    ) -> CheckoutSession:
        value = validate_amount(amount)
        origin = self._config.frontend_origin.rstrip("/")
        room_param = quote(room_tag or "", safe="")

        # Stripe expects form-encoded data with bracketed keys
        data: dict[str, str] = {
            "mode": "payment",
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": self._config.currency,
            "line_items[0][price_data][unit_amount]": str(value),
            "line_items[0][price_data][product_data][name]": f"Tip {value}",
            "success_url": (
                f"{origin}/return?tip=success&roomId={room_param}"
                "&session_id={CHECKOUT_SESSION_ID}"
            ),
            "cancel_url": f"{origin}/return?tip=cancel&roomId={room_param}",
            "metadata[room_tag]": room_tag or "",
            "metadata[correlation_id]": correlation_id or "",
        }
        headers = {"Authorization": f"Bearer {self._config.secret_key.get_secret_value()}"}

        try:
            resp = await self._client.post(self._config.checkout_url, data=data, headers=headers)
            resp.raise_for_status()
            body: dict[str, Any] = resp.json()
        except self._httpx.TimeoutException as exc:
            raise PaymentError("timeout") from exc
        except self._httpx.HTTPStatusError as exc:
            message = f"http_{exc.response.status_code}"
            try:
                error = exc.response.json().get("error", {})
                if error.get("message"):
                    message = f"{message}: {error['message']}"
            except ValueError:
                pass
            raise PaymentError(message) from exc
        except self._httpx.HTTPError as exc:
            raise PaymentError(str(exc)) from exc

        if not body.get("id") or not body.get("url"):
            raise PaymentError("checkout response missing id or url")
        logger.info(
            "Created checkout %s",
            body["id"],
            extra={"amount": value, "room_tag": room_tag},
        )
        return CheckoutSession(id=body["id"], url=body["url"])

    def verify_signature(self, payload: bytes, signature: str) -> bool:
        """Verify a ``Stripe-Signature`` header (``t=...,v1=...``).

        Returns False when no webhook secret is configured, the header is
        malformed, the timestamp is outside the tolerance window, or no
        ``v1`` signature matches.
        """
        if self._config.webhook_secret is None or not signature:
            return False

        timestamp: str | None = None
        candidates: list[str] = []
        for item in signature.split(","):
            key, _, value = item.strip().partition("=")
            if key == "t":
                timestamp = value
            elif key == "v1":
                candidates.append(value)
        if timestamp is None or not candidates:
            return False

        try:
            ts = int(timestamp)
        except ValueError:
            return False
        tolerance = self._config.webhook_tolerance_seconds
        if tolerance and abs(time.time() - ts) > tolerance:
            return False

        signed = f"{timestamp}.".encode() + payload
        expected = hmac.new(
            self._config.webhook_secret.get_secret_value().encode(),
            signed,
            hashlib.sha256,
        ).hexdigest()
        return any(hmac.compare_digest(expected, c) for c in candidates)

    def parse_webhook(self, payload: bytes | dict[str, object]) -> PaymentCompleted | None:
        return parse_stripe_webhook(payload)

    async def close(self) -> None:
        await self._client.aclose()


def parse_stripe_webhook(payload: bytes | dict[str, Any]) -> PaymentCompleted | None:
    """Extract a completed checkout from a Stripe event payload.

    Returns None for malformed payloads and for any event type other
    than ``checkout.session.completed``.
    """
    try:
        event = json.loads(payload) if isinstance(payload, bytes | str) else payload
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("Ignoring non-JSON webhook payload")
        return None
    if not isinstance(event, dict) or event.get("type") != CHECKOUT_COMPLETED:
        return None

    obj = (event.get("data") or {}).get("object") or {}
    checkout_id = obj.get("id")
    if not checkout_id:
        return None
    metadata = obj.get("metadata") or {}
    amount = obj.get("amount_total")
    return PaymentCompleted(
        checkout_session_id=str(checkout_id),
        amount=int(amount) if isinstance(amount, int | float) else None,
        room_tag=metadata.get("room_tag") or None,
        correlation_id=metadata.get("correlation_id") or None,
    )
