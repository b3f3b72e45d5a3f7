"""Stripe service - Integration with the Stripe API"""

import json
import logging
from typing import Optional

import stripe

from ...config import STRIPE_CURRENCY, STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from ...errors import ConfigurationError, RemoteOperationError

logger = logging.getLogger(__name__)


class StripeService:
    """
    Thin wrapper over the Stripe SDK.

    Credentials are passed in explicitly and every call carries its own
    api_key, so several instances (or a test double) can coexist without
    touching the SDK's module-level state.
    """

    def __init__(
        self,
        api_key: Optional[str],
        webhook_secret: Optional[str] = None,
        currency: str = "eur",
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def is_available(self) -> bool:
        """Check if the Stripe client has credentials"""
        return bool(self.api_key)

    def _require_api_key(self) -> str:
        if not self.api_key:
            logger.error("❌ STRIPE_SECRET_KEY not configured")
            raise ConfigurationError("Stripe is not configured (missing STRIPE_SECRET_KEY)")
        return self.api_key

    def create_payment_intent(
        self,
        amount: int,
        metadata: dict,
        destination_account: Optional[str] = None,
        application_fee_amount: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> dict:
        """
        Create a PaymentIntent for amount (cents).

        With a Connect destination the platform fee is split off by Stripe via
        application_fee_amount; without one the platform collects everything.
        """
        api_key = self._require_api_key()

        params = {
            "amount": amount,
            "currency": self.currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if destination_account:
            params["application_fee_amount"] = application_fee_amount or 0
            params["transfer_data"] = {"destination": destination_account}

        try:
            intent = stripe.PaymentIntent.create(
                api_key=api_key,
                idempotency_key=idempotency_key,
                **params,
            )
            logger.info(f"✅ Created PaymentIntent {intent['id']} for {amount} {self.currency}")
            return {"id": intent["id"], "client_secret": intent["client_secret"]}
        except stripe.StripeError as e:
            logger.error(f"Stripe API error while creating payment intent: {e}")
            raise RemoteOperationError(e.user_message or str(e)) from e

    def retrieve_payment_intent(self, payment_intent_id: str) -> dict:
        """Current id, status, amount and metadata of a PaymentIntent, as Stripe reports them"""
        api_key = self._require_api_key()

        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=api_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe API error while retrieving {payment_intent_id}: {e}")
            raise RemoteOperationError(e.user_message or str(e)) from e

        return {
            "id": intent["id"],
            "status": intent["status"],
            "amount": intent["amount"],
            "metadata": dict(intent.get("metadata") or {}),
        }

    def create_refund(self, payment_intent_id: str, reason: Optional[str] = None) -> dict:
        """Refund a PaymentIntent in full"""
        api_key = self._require_api_key()

        metadata = {"reason": reason} if reason else {}
        try:
            refund = stripe.Refund.create(
                api_key=api_key,
                payment_intent=payment_intent_id,
                metadata=metadata,
                idempotency_key=f"refund-{payment_intent_id}",
            )
            logger.info(f"✅ Created refund {refund['id']} for {payment_intent_id}")
            return {"id": refund["id"], "status": refund["status"]}
        except stripe.StripeError as e:
            logger.error(f"Stripe API error while refunding {payment_intent_id}: {e}")
            raise RemoteOperationError(e.user_message or str(e)) from e

    def construct_event(self, payload: bytes, signature: str) -> dict:
        """
        Verify a webhook signature and return the event as plain JSON.

        Raises ValueError for an unparseable payload and
        stripe.SignatureVerificationError for a bad signature.
        """
        if not self.webhook_secret:
            raise ConfigurationError("Stripe webhooks are not configured (missing STRIPE_WEBHOOK_SECRET)")
        stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        return json.loads(payload)


def get_stripe_service() -> StripeService:
    """Dependency injection for StripeService"""
    return StripeService(
        api_key=STRIPE_SECRET_KEY,
        webhook_secret=STRIPE_WEBHOOK_SECRET,
        currency=STRIPE_CURRENCY,
    )
