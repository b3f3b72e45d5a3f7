"""Payment repository - Database operations for payments and Stripe accounts"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Payment, StripeAccount


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_payment_by_id(db: Session, payment_id: str) -> Optional[Payment]:
        """Get payment by ID"""
        return db.query(Payment).filter(Payment.id == payment_id).first()

    @staticmethod
    def get_payment_by_intent_id(db: Session, stripe_payment_intent_id: str) -> Optional[Payment]:
        """Get payment by Stripe PaymentIntent ID"""
        return (
            db.query(Payment)
            .filter(Payment.stripe_payment_intent_id == stripe_payment_intent_id)
            .first()
        )

    @staticmethod
    def get_pending_payment(
        db: Session, booking_id: str, payment_type: str, amount: int, commission: int
    ) -> Optional[Payment]:
        """Pending payment of a booking with the same type, amount and commission"""
        return (
            db.query(Payment)
            .filter(
                Payment.booking_id == booking_id,
                Payment.payment_type == payment_type,
                Payment.amount == amount,
                Payment.commission == commission,
                Payment.status == "pending",
            )
            .first()
        )

    @staticmethod
    def create_payment(db: Session, **payment_data) -> Payment:
        """Create a payment record"""
        payment = Payment(**payment_data)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def get_salon_payments(db: Session, salon_id: str, offset: int, limit: int) -> tuple[list[Payment], int]:
        """Get one page of a salon's payments (newest first) and the total count"""
        query = db.query(Payment).filter(Payment.salon_id == salon_id)
        total = query.count()
        rows = query.order_by(Payment.created_at.desc()).offset(offset).limit(limit).all()
        return rows, total

    @staticmethod
    def get_completed_payments_since(db: Session, salon_id: str, start_date: datetime) -> list[Payment]:
        """Get a salon's completed payments created on or after start_date"""
        return (
            db.query(Payment)
            .filter(
                Payment.salon_id == salon_id,
                Payment.status == "completed",
                Payment.created_at >= start_date,
            )
            .all()
        )

    @staticmethod
    def get_unpaid_out_payments(db: Session, salon_id: str) -> list[Payment]:
        """Completed payments whose salon share has not been transferred yet"""
        return (
            db.query(Payment)
            .filter(
                Payment.salon_id == salon_id,
                Payment.status == "completed",
                Payment.is_paid_out.is_(False),
            )
            .all()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        """Get the booking a payment belongs to"""
        return db.query(Booking).filter(Booking.id == booking_id).first()

    # ------------------------------------------------------------------
    # Stripe accounts
    # ------------------------------------------------------------------

    @staticmethod
    def get_stripe_account(db: Session, salon_id: str) -> Optional[StripeAccount]:
        """Get the Stripe account record of a salon"""
        return db.query(StripeAccount).filter(StripeAccount.salon_id == salon_id).first()

    @staticmethod
    def get_stripe_account_by_connect_id(db: Session, stripe_account_id: str) -> Optional[StripeAccount]:
        """Get a Stripe account record by Connect account ID"""
        return (
            db.query(StripeAccount)
            .filter(StripeAccount.stripe_account_id == stripe_account_id)
            .first()
        )

    @staticmethod
    def get_stripe_account_by_customer_id(db: Session, stripe_customer_id: str) -> Optional[StripeAccount]:
        """Get a Stripe account record by subscription customer ID"""
        return (
            db.query(StripeAccount)
            .filter(StripeAccount.stripe_customer_id == stripe_customer_id)
            .first()
        )

    @staticmethod
    def create_stripe_account(db: Session, salon_id: str, **account_data) -> StripeAccount:
        """Create a Stripe account record"""
        account = StripeAccount(salon_id=salon_id, **account_data)
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    @staticmethod
    def update_stripe_account(db: Session, account: StripeAccount, **updates) -> StripeAccount:
        """Update a Stripe account record; None values are written as-is"""
        for key, value in updates.items():
            if hasattr(account, key):
                setattr(account, key, value)

        db.commit()
        db.refresh(account)
        return account
