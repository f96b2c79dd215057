"""Payment providers."""

from snackroom.providers.payment.base import CheckoutSession, PaymentProvider, validate_amount
from snackroom.providers.payment.config import StripeConfig
from snackroom.providers.payment.mock import MockPaymentProvider
from snackroom.providers.payment.stripe import StripePaymentProvider, parse_stripe_webhook

__all__ = [
    "CheckoutSession",
    "MockPaymentProvider",
    "PaymentProvider",
    "StripeConfig",
    "StripePaymentProvider",
    "parse_stripe_webhook",
    "validate_amount",
]
