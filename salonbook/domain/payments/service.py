"""Payment service - Business logic for booking payments and salon payouts"""

import calendar
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import (
    ConfigurationError,
    NotFoundError,
    PaymentCreationError,
    PaymentVerificationError,
    RemoteOperationError,
)
from ...models import Payment, Salon, StripeAccount
from ...shared.ownership import get_owned_salon
from .commission import (
    PaymentSplit,
    PaymentStats,
    PaymentType,
    SubscriptionPlan,
    aggregate_payment_stats,
    calculate_payment_split,
    resolve_plan,
)
from .repository import PaymentRepository
from .stripe_service import StripeService

logger = logging.getLogger(__name__)

PAYMENTS_PER_PAGE = 20
STATS_PERIODS = ("week", "month", "year")


@dataclass
class PaymentIntentResult:
    id: str
    booking_id: str
    payment_type: str
    amount: int
    deposit_amount: int
    total_service_price: int
    remaining_amount: int
    commission: int
    salon_amount: int
    commission_rate: float
    currency: str
    status: str
    stripe_payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None


def _subtract_months(moment: datetime, months: int) -> datetime:
    """Step back whole months, clamping the day (Mar 31 - 1 month => Feb 28/29)"""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def payment_idempotency_key(booking_id: str, split: PaymentSplit) -> str:
    """Stripe idempotency key; any change in what is charged yields a new key"""
    return (
        f"booking-{booking_id}-{split.payment_type.value}"
        f"-{split.pay_amount}-{split.commission}"
    )


def period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """Start of a stats window ending now"""
    now = now or datetime.utcnow()
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return _subtract_months(now, 1)
    if period == "year":
        return _subtract_months(now, 12)
    raise ValueError(f"period must be one of {', '.join(STATS_PERIODS)}")


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session, processor: Optional[StripeService] = None):
        self.db = db
        self.processor = processor
        self.repo = PaymentRepository()

    def _plan_for_salon(self, salon_id: str) -> tuple[SubscriptionPlan, Optional[StripeAccount]]:
        account = self.repo.get_stripe_account(self.db, salon_id)
        plan = resolve_plan(account.subscription_plan if account else None)
        return plan, account

    def check_salon_owner(self, salon_id: str, owner_id: str) -> Salon:
        """Salon-side operations are reserved to the salon's owner"""
        return get_owned_salon(self.db, salon_id, owner_id)

    def create_payment_intent(
        self,
        booking_id: str,
        payment_type: str = PaymentType.DEPOSIT.value,
        client_id: Optional[str] = None,
    ) -> PaymentIntentResult:
        """
        Compute the commission split for a booking and record a pending payment.

        The price and the salon come from the stored booking, never from the
        caller. When client_id is given the booking must belong to that client.

        When a processor is wired in, a PaymentIntent is created first. Its
        idempotency key covers the booking, payment type, amount and fee, so a
        retried request reuses the same intent while a changed price or plan
        gets a fresh one. A failed write is surfaced as PaymentCreationError
        and is not retried.
        """
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking or (client_id is not None and booking.client_id != client_id):
            raise NotFoundError("Booking", booking_id)

        salon_id = booking.salon_id
        total_service_price = booking.total_price
        plan, account = self._plan_for_salon(salon_id)
        split = calculate_payment_split(total_service_price, plan, payment_type)
        currency = self.processor.currency if self.processor else "eur"

        logger.info(
            f"💳 Payment for booking {booking_id}: plan={plan.value}, type={split.payment_type.value}, "
            f"amount={split.pay_amount}, commission={split.commission}"
        )

        stripe_intent = None
        if self.processor is not None:
            stripe_intent = self.processor.create_payment_intent(
                amount=split.pay_amount,
                metadata={
                    "booking_id": booking_id,
                    "salon_id": salon_id,
                    "payment_type": split.payment_type.value,
                    "commission_rate": str(split.commission_rate),
                },
                destination_account=account.stripe_account_id if account else None,
                application_fee_amount=split.commission,
                idempotency_key=payment_idempotency_key(booking_id, split),
            )

        if stripe_intent:
            existing = self.repo.get_payment_by_intent_id(self.db, stripe_intent["id"])
        else:
            existing = self.repo.get_pending_payment(
                self.db, booking_id, split.payment_type.value, split.pay_amount, split.commission
            )

        try:
            payment = existing or self.repo.create_payment(
                self.db,
                booking_id=booking_id,
                salon_id=salon_id,
                client_id=booking.client_id,
                amount=split.pay_amount,
                total_service_price=total_service_price,
                remaining_amount=split.remaining_amount,
                commission=split.commission,
                salon_amount=split.salon_amount,
                commission_rate=split.commission_rate,
                currency=currency,
                status="pending",
                payment_type=split.payment_type.value,
                stripe_payment_intent_id=stripe_intent["id"] if stripe_intent else None,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to record payment for booking {booking_id}: {e}")
            raise PaymentCreationError(f"Failed to create payment: {e}") from e

        return PaymentIntentResult(
            id=payment.id,
            booking_id=booking_id,
            payment_type=split.payment_type.value,
            amount=split.pay_amount,
            deposit_amount=split.deposit_amount,
            total_service_price=total_service_price,
            remaining_amount=split.remaining_amount,
            commission=split.commission,
            salon_amount=split.salon_amount,
            commission_rate=float(split.commission_rate),
            currency=currency,
            status=payment.status,
            stripe_payment_intent_id=payment.stripe_payment_intent_id,
            client_secret=stripe_intent["client_secret"] if stripe_intent else None,
        )

    def get_salon_payment_stats(self, salon_id: str, period: str = "month") -> PaymentStats:
        """Revenue totals over a salon's completed payments in the period"""
        start_date = period_start(period)
        payments = self.repo.get_completed_payments_since(self.db, salon_id, start_date)
        return aggregate_payment_stats(payments)

    def get_salon_payments(self, salon_id: str, page: int = 1, limit: int = PAYMENTS_PER_PAGE) -> dict:
        """Paginated payment history of a salon"""
        offset = (page - 1) * limit
        rows, total = self.repo.get_salon_payments(self.db, salon_id, offset, limit)
        total_pages = math.ceil(total / limit) if limit else 0

        return {
            "data": rows,
            "total": total,
            "page": page,
            "total_pages": total_pages,
            "has_more": page < total_pages,
        }

    def get_stripe_account(self, salon_id: str) -> Optional[StripeAccount]:
        """Stripe account record of a salon, or None if it never connected"""
        return self.repo.get_stripe_account(self.db, salon_id)

    def create_stripe_connect_account(self, salon_id: str) -> StripeAccount:
        """Create the local Connect account record; onboarding happens on Stripe's side"""
        existing = self.repo.get_stripe_account(self.db, salon_id)
        if existing:
            return existing

        try:
            return self.repo.create_stripe_account(
                self.db,
                salon_id,
                subscription_plan=SubscriptionPlan.FREE.value,
                is_onboarded=False,
                charges_enabled=False,
                payouts_enabled=False,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

    def update_subscription_plan(self, salon_id: str, plan: str) -> StripeAccount:
        """Switch a salon to another plan"""
        resolved = SubscriptionPlan(plan)
        account = self.repo.get_stripe_account(self.db, salon_id)
        if not account:
            raise NotFoundError("Stripe account", salon_id)

        status = None if resolved is SubscriptionPlan.FREE else "active"
        try:
            account = self.repo.update_stripe_account(
                self.db,
                account,
                subscription_plan=resolved.value,
                subscription_status=status,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        logger.info(f"✅ Salon {salon_id} moved to plan {resolved.value}")
        return account

    def get_salon_balance(self, salon_id: str) -> dict:
        """Salon share of completed payments not yet paid out"""
        payments = self.repo.get_unpaid_out_payments(self.db, salon_id)
        available = sum(p.salon_amount or 0 for p in payments)
        currency = self.processor.currency if self.processor else "eur"
        return {"available_balance": available, "currency": currency}

    def confirm_payment(
        self,
        payment_id: str,
        stripe_payment_intent_id: str,
        client_id: Optional[str] = None,
    ) -> Payment:
        """
        Mark a payment completed and confirm its booking.

        The PaymentIntent is fetched from the processor and must have
        succeeded for exactly the recorded amount. Payment and booking are
        written in the same transaction; confirming twice is a no-op.
        """
        payment = self.repo.get_payment_by_id(self.db, payment_id)
        booking = self.repo.get_booking(self.db, payment.booking_id) if payment else None
        if not payment or (client_id is not None and (not booking or booking.client_id != client_id)):
            raise NotFoundError("Payment", payment_id)

        if payment.status == "completed" and payment.stripe_payment_intent_id == stripe_payment_intent_id:
            return payment
        if payment.status != "pending":
            raise PaymentVerificationError(f"Payment {payment_id} is {payment.status}")
        if payment.stripe_payment_intent_id and payment.stripe_payment_intent_id != stripe_payment_intent_id:
            raise PaymentVerificationError(f"PaymentIntent {stripe_payment_intent_id} does not belong to this payment")

        claimed = self.repo.get_payment_by_intent_id(self.db, stripe_payment_intent_id)
        if claimed and claimed.id != payment.id:
            raise PaymentVerificationError(f"PaymentIntent {stripe_payment_intent_id} is already used")

        if self.processor is None:
            raise ConfigurationError("A payment processor is required to confirm payments")

        intent = self.processor.retrieve_payment_intent(stripe_payment_intent_id)
        if intent["status"] != "succeeded":
            raise PaymentVerificationError(f"PaymentIntent {stripe_payment_intent_id} is {intent['status']}")
        if intent["amount"] != payment.amount:
            raise PaymentVerificationError(
                f"PaymentIntent {stripe_payment_intent_id} charged {intent['amount']}, expected {payment.amount}"
            )
        intent_booking = intent.get("metadata", {}).get("booking_id")
        if intent_booking and intent_booking != payment.booking_id:
            raise PaymentVerificationError(f"PaymentIntent {stripe_payment_intent_id} is for another booking")

        now = datetime.utcnow()
        try:
            payment.status = "completed"
            payment.stripe_payment_intent_id = stripe_payment_intent_id
            payment.paid_at = now

            if booking and booking.status == "pending":
                booking.status = "confirmed"

            self.db.commit()
            self.db.refresh(payment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to confirm payment {payment_id}: {e}")
            raise RemoteOperationError(str(e)) from e

        logger.info(f"✅ Payment {payment_id} confirmed")
        return payment

    def initiate_refund(self, payment_id: str, owner_id: str, reason: Optional[str] = None) -> Payment:
        """
        Refund a completed payment on behalf of the salon owner.

        The processor refund is requested first when one is wired in; the
        charge.refunded webhook later cancels the booking.
        """
        payment = self.repo.get_payment_by_id(self.db, payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        try:
            get_owned_salon(self.db, payment.salon_id, owner_id)
        except NotFoundError as e:
            raise NotFoundError("Payment", payment_id) from e

        if payment.status == "refunded":
            return payment
        if payment.status != "completed":
            raise PaymentVerificationError(f"Payment {payment_id} is {payment.status} and cannot be refunded")

        if self.processor is not None and payment.stripe_payment_intent_id:
            self.processor.create_refund(payment.stripe_payment_intent_id, reason)

        try:
            payment.status = "refunded"
            payment.refund_reason = reason
            payment.refunded_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(payment)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        logger.info(f"↩️ Payment {payment_id} refunded")
        return payment
