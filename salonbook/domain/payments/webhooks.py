"""
Stripe webhook handling

Maps processor events onto local payment, booking and account state.
Every handler writes terminal values rather than incrementing anything, so a
redelivered event leaves the rows exactly as the first delivery did. Payment
and booking changes for one event are committed together.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .commission import SubscriptionPlan
from .repository import PaymentRepository

logger = logging.getLogger(__name__)


def plan_from_price_id(price_id: Optional[str]) -> SubscriptionPlan:
    """Derive the plan from a Stripe price ID such as price_pro_monthly"""
    price_id = (price_id or "").lower()
    if "starter" in price_id:
        return SubscriptionPlan.STARTER
    if "premium" in price_id:
        return SubscriptionPlan.PREMIUM
    if "pro" in price_id:
        return SubscriptionPlan.PRO
    return SubscriptionPlan.FREE


def subscription_status_from_stripe(status: Optional[str]) -> str:
    if status == "active":
        return "active"
    if status == "past_due":
        return "past_due"
    return "cancelled"


class StripeWebhookHandler:
    """Applies verified Stripe events to the database"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self._handlers: dict[str, Callable[[dict], None]] = {
            "payment_intent.succeeded": self._payment_succeeded,
            "payment_intent.payment_failed": self._payment_failed,
            "charge.refunded": self._charge_refunded,
            "account.updated": self._account_updated,
            "customer.subscription.created": self._subscription_changed,
            "customer.subscription.updated": self._subscription_changed,
            "customer.subscription.deleted": self._subscription_deleted,
        }

    def handle_event(self, event: dict) -> bool:
        """Dispatch an event; returns False for event types we do not handle"""
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled Stripe event type: {event_type}")
            return False

        logger.info(f"📨 Processing Stripe event {event.get('id')}: {event_type}")
        try:
            handler(obj)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True

    def _set_booking_status(self, booking_id: Optional[str], status: str) -> None:
        if not booking_id:
            return
        booking = self.repo.get_booking(self.db, booking_id)
        if booking:
            booking.status = status
        else:
            logger.warning(f"⚠️ Webhook references unknown booking {booking_id}")

    def _payment_succeeded(self, intent: dict) -> None:
        metadata = intent.get("metadata") or {}
        payment = self.repo.get_payment_by_intent_id(self.db, intent.get("id"))

        if payment:
            payment.status = "completed"
            if payment.paid_at is None:
                payment.paid_at = datetime.utcnow()
        else:
            logger.warning(f"⚠️ No payment recorded for PaymentIntent {intent.get('id')}")

        booking_id = metadata.get("booking_id") or (payment.booking_id if payment else None)
        self._set_booking_status(booking_id, "confirmed")

    def _payment_failed(self, intent: dict) -> None:
        error = (intent.get("last_payment_error") or {}).get("message")
        logger.info(f"Payment failed for PaymentIntent {intent.get('id')}: {error}")

        payment = self.repo.get_payment_by_intent_id(self.db, intent.get("id"))
        if payment:
            payment.status = "failed"

    def _charge_refunded(self, charge: dict) -> None:
        payment_intent_id = charge.get("payment_intent")
        payment = self.repo.get_payment_by_intent_id(self.db, payment_intent_id)
        if not payment:
            logger.warning(f"⚠️ Refund for unknown PaymentIntent {payment_intent_id}")
            return

        payment.status = "refunded"
        if payment.refunded_at is None:
            payment.refunded_at = datetime.utcnow()
        self._set_booking_status(payment.booking_id, "cancelled")

    def _account_updated(self, account: dict) -> None:
        record = self.repo.get_stripe_account_by_connect_id(self.db, account.get("id"))
        if not record:
            logger.warning(f"⚠️ Connect account {account.get('id')} is not linked to a salon")
            return

        record.is_onboarded = bool(account.get("details_submitted"))
        record.charges_enabled = bool(account.get("charges_enabled"))
        record.payouts_enabled = bool(account.get("payouts_enabled"))

    def _subscription_changed(self, subscription: dict) -> None:
        record = self.repo.get_stripe_account_by_customer_id(self.db, subscription.get("customer"))
        if not record:
            logger.warning(f"⚠️ Subscription for unknown customer {subscription.get('customer')}")
            return

        items = (subscription.get("items") or {}).get("data") or []
        price_id = (items[0].get("price") or {}).get("id") if items else None

        record.subscription_plan = plan_from_price_id(price_id).value
        record.subscription_status = subscription_status_from_stripe(subscription.get("status"))
        record.stripe_subscription_id = subscription.get("id")

    def _subscription_deleted(self, subscription: dict) -> None:
        record = self.repo.get_stripe_account_by_customer_id(self.db, subscription.get("customer"))
        if not record:
            return

        record.subscription_plan = SubscriptionPlan.FREE.value
        record.subscription_status = "cancelled"
