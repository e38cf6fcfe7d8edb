# apps/core/services/payment_gateway.py
"""
Payment Gateway

Stripe Checkout client. Amounts are passed in major units and sent to
Stripe in cents.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict, Any

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    """The parts of a Stripe Checkout session the booking flow needs."""
    session_id: str
    url: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    payment_intent: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == 'paid'

    @property
    def is_expired(self) -> bool:
        return self.status == 'expired'


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class StripeGateway:
    """Stripe Checkout session client."""

    def __init__(self, api_key: str = None, currency: str = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.currency = (currency or settings.PAYMENT_CURRENCY).lower()

    def create_checkout_session(
        self,
        amount: Decimal,
        description: str,
        metadata: Dict[str, Any] = None,
        customer_email: str = None,
        success_url: str = None,
        cancel_url: str = None
    ) -> CheckoutSession:
        """Create a one-line-item payment session."""
        from .exceptions import PaymentGatewayError

        stripe.api_key = self.api_key
        try:
            session = stripe.checkout.Session.create(
                mode='payment',
                line_items=[{
                    'price_data': {
                        'currency': self.currency,
                        'unit_amount': to_cents(amount),
                        'product_data': {'name': description[:250]},
                    },
                    'quantity': 1,
                }],
                metadata={k: str(v) for k, v in (metadata or {}).items()},
                customer_email=customer_email,
                success_url=success_url or settings.PAYMENT_SUCCESS_URL,
                cancel_url=cancel_url or settings.PAYMENT_CANCEL_URL,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed: {e}")
            raise PaymentGatewayError(f"Payment gateway error: {e.user_message or 'request failed'}")

        return CheckoutSession(
            session_id=session.id,
            url=session.url,
            status=session.status,
            payment_status=session.payment_status,
            payment_intent=session.payment_intent,
        )

    def retrieve_session_status(self, session_id: str) -> CheckoutSession:
        from .exceptions import PaymentGatewayError

        stripe.api_key = self.api_key
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe session retrieval failed: {e}")
            raise PaymentGatewayError(f"Payment gateway error: {e.user_message or 'request failed'}")

        return CheckoutSession(
            session_id=session.id,
            url=session.url,
            status=session.status,
            payment_status=session.payment_status,
            payment_intent=session.payment_intent,
        )
