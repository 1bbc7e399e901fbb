"""Stripe Checkout and webhook handling."""
import logging
from typing import Any, Optional

import stripe

from ..common.config import Settings
from ..common.errors import ConfigurationError, PaymentError, TrustVerificationError

log = logging.getLogger(__name__)

PRODUCT_NAME = "Jedi Path Destiny"
PRODUCT_DESCRIPTION = "Unlock your full Jedi destiny"
CHECKOUT_COMPLETED = "checkout.session.completed"


class PaymentGateway:
    """Stripe access bound to one set of settings.

    The secret key is passed per call instead of through ``stripe.api_key``
    so several gateways (tests, reloads) never share module state.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.payments_enabled

    def _require_enabled(self) -> str:
        if not self.enabled:
            raise ConfigurationError("Stripe is not configured.")
        return self.settings.stripe_secret_key

    def success_url(self) -> str:
        return f"{self.settings.site_url}/api/stripe/confirm?session_id={{CHECKOUT_SESSION_ID}}"

    def cancel_url(self) -> str:
        return f"{self.settings.site_url}/?canceled=true"

    def create_checkout_url(self) -> str:
        """Create a one-off Checkout session and return its hosted URL."""
        api_key = self._require_enabled()
        try:
            session = stripe.checkout.Session.create(
                api_key=api_key,
                payment_method_types=["card"],
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": self.settings.currency,
                            "product_data": {
                                "name": PRODUCT_NAME,
                                "description": PRODUCT_DESCRIPTION,
                            },
                            "unit_amount": self.settings.price_cents,
                        },
                        "quantity": 1,
                    }
                ],
                success_url=self.success_url(),
                cancel_url=self.cancel_url(),
            )
        except stripe.StripeError as e:
            log.error(f"Stripe checkout error: {e}")
            raise PaymentError("Failed to create checkout session") from e
        log.info(f"Created checkout session {session.id}")
        return session.url

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Any:
        """Verify a webhook body against its Stripe-Signature header."""
        secret = self.settings.stripe_webhook_secret
        if not signature or not secret:
            raise TrustVerificationError("Missing signature or secret")
        try:
            return stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise TrustVerificationError(f"Invalid signature: {e}") from e
        except ValueError as e:
            raise TrustVerificationError(f"Invalid payload: {e}") from e

    def confirm_checkout(self, session_id: str) -> Optional[int]:
        """Creation time (unix) of the Checkout session if it has been paid, else None."""
        api_key = self._require_enabled()
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=api_key)
        except stripe.StripeError as e:
            log.warning(f"Could not retrieve checkout session {session_id}: {e}")
            return None
        log.info(f"Checkout session {session_id} payment_status={session.payment_status}")
        if session.payment_status != "paid":
            return None
        return int(session.created)
