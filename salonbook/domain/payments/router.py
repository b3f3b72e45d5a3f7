"""Payment router - FastAPI endpoints for payments and Stripe webhooks"""

import logging
from dataclasses import asdict
from typing import Optional

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from .schemas import (
    BalanceResponse,
    ConfirmPaymentRequest,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentResponse,
    PaymentsPageResponse,
    PaymentStatsResponse,
    RefundRequest,
    StripeAccountResponse,
    UpdatePlanRequest,
)
from .service import PaymentService
from .stripe_service import StripeService, get_stripe_service
from .webhooks import StripeWebhookHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])
webhooks_router = APIRouter(tags=["Webhooks"])


def get_payment_service(
    db: Session = Depends(get_db),
    processor: StripeService = Depends(get_stripe_service),
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, processor)


# ============================================================================
# BOOKING PAYMENTS
# ============================================================================


@router.post("/intents", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentRequest,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a payment (deposit or full) for one of the current user's bookings"""
    result = service.create_payment_intent(
        booking_id=body.booking_id,
        payment_type=body.payment_type.value,
        client_id=user_id,
    )
    return asdict(result)


@router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(
    payment_id: str,
    body: ConfirmPaymentRequest,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Confirm a payment once Stripe reports its PaymentIntent as succeeded"""
    return service.confirm_payment(payment_id, body.stripe_payment_intent_id, client_id=user_id)


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: str,
    body: RefundRequest,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Refund a payment (salon owner only)"""
    return service.initiate_refund(payment_id, user_id, body.reason)


# ============================================================================
# SALON REVENUE
# ============================================================================


@router.get("/salons/{salon_id}", response_model=PaymentsPageResponse)
async def get_salon_payments(
    salon_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Payment history of a salon"""
    service.check_salon_owner(salon_id, user_id)
    return service.get_salon_payments(salon_id, page, limit)


@router.get("/salons/{salon_id}/stats", response_model=PaymentStatsResponse)
async def get_salon_payment_stats(
    salon_id: str,
    period: str = Query("month", pattern="^(week|month|year)$"),
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Revenue statistics over the last week, month or year"""
    service.check_salon_owner(salon_id, user_id)
    return asdict(service.get_salon_payment_stats(salon_id, period))


@router.get("/salons/{salon_id}/balance", response_model=BalanceResponse)
async def get_salon_balance(
    salon_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Salon share not yet paid out"""
    service.check_salon_owner(salon_id, user_id)
    return service.get_salon_balance(salon_id)


# ============================================================================
# STRIPE ACCOUNT & SUBSCRIPTION
# ============================================================================


@router.get("/salons/{salon_id}/account", response_model=Optional[StripeAccountResponse])
async def get_stripe_account(
    salon_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Stripe account of a salon (null if the salon never connected)"""
    service.check_salon_owner(salon_id, user_id)
    return service.get_stripe_account(salon_id)


@router.post("/salons/{salon_id}/account", response_model=StripeAccountResponse)
async def create_stripe_account(
    salon_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Create the salon's Stripe account record"""
    service.check_salon_owner(salon_id, user_id)
    return service.create_stripe_connect_account(salon_id)


@router.put("/salons/{salon_id}/plan", response_model=StripeAccountResponse)
async def update_subscription_plan(
    salon_id: str,
    body: UpdatePlanRequest,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Change the salon's subscription plan"""
    service.check_salon_owner(salon_id, user_id)
    return service.update_subscription_plan(salon_id, body.plan)


# ============================================================================
# WEBHOOKS
# ============================================================================


@webhooks_router.post("/webhooks/stripe")
async def handle_stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    processor: StripeService = Depends(get_stripe_service),
):
    """Stripe webhook endpoint to receive asynchronous payment events"""
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    payload = await request.body()
    try:
        event = processor.construct_event(payload, stripe_signature)
    except ValueError as e:
        logger.warning("🚫 Invalid Stripe webhook payload")
        raise HTTPException(status_code=400, detail="Invalid payload") from e
    except stripe.SignatureVerificationError as e:
        logger.warning("🚫 Invalid Stripe webhook signature")
        raise HTTPException(status_code=400, detail="Invalid signature") from e

    StripeWebhookHandler(db).handle_event(event)
    return {"received": True}
