"""Abstract base class for payment providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from snackroom.core.errors import PaymentError
from snackroom.models.commands import PaymentCompleted


class CheckoutSession(BaseModel):
    """A hosted checkout the visitor is redirected to."""

    id: str
    url: str


class PaymentProvider(ABC):
    """Creates tip checkouts and interprets the provider's webhooks."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def create_checkout(
        self,
        amount: int,
        room_tag: str | None,
        correlation_id: str | None,
    ) -> CheckoutSession:
        """Create a checkout for a tip of *amount* (minor currency units).

        *correlation_id* is echoed back by the completion webhook so the
        payer's connection can be found again.

        Raises:
            PaymentError: The amount is invalid or the provider failed.
        """
        ...

    def verify_signature(self, payload: bytes, signature: str) -> bool:
        """Verify a webhook signature. Default accepts everything."""
        return True

    @abstractmethod
    def parse_webhook(self, payload: bytes | dict[str, object]) -> PaymentCompleted | None:
        """Return the completed payment described by *payload*, if any."""
        ...

    async def close(self) -> None:  # noqa: B027
        """Release provider resources."""


def validate_amount(amount: object) -> int:
    """Coerce a tip amount to a positive whole number.

    Raises:
        PaymentError: The amount is not a positive whole number.
    """
    if isinstance(amount, bool) or not isinstance(amount, int | float | str):
        raise PaymentError("invalid amount")
    try:
        value = float(amount)
    except ValueError as exc:
        raise PaymentError("invalid amount") from exc
    if not value.is_integer() or value <= 0:
        raise PaymentError("invalid amount")
    return int(value)
