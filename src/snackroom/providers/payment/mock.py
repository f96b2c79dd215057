"""Mock payment provider for testing."""

from __future__ import annotations

from snackroom.core.errors import PaymentError
from snackroom.models.commands import PaymentCompleted
from snackroom.providers.payment.base import CheckoutSession, PaymentProvider, validate_amount
from snackroom.providers.payment.stripe import parse_stripe_webhook


class MockPaymentProvider(PaymentProvider):
    """Records checkouts and understands Stripe-shaped webhook payloads."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.checkouts: list[dict[str, object]] = []

    @property
    def name(self) -> str:
        return "mock"

    async def create_checkout(
        self,
        amount: int,
        room_tag: str | None,
        correlation_id: str | None,
    ) -> CheckoutSession:
        value = validate_amount(amount)
        if self.fail:
            raise PaymentError("mock payment provider failure")
        checkout_id = f"cs_mock_{len(self.checkouts) + 1}"
        self.checkouts.append(
            {
                "id": checkout_id,
                "amount": value,
                "room_tag": room_tag,
                "correlation_id": correlation_id,
            }
        )
        return CheckoutSession(id=checkout_id, url=f"https://checkout.test/{checkout_id}")

    def parse_webhook(self, payload: bytes | dict[str, object]) -> PaymentCompleted | None:
        return parse_stripe_webhook(payload)
