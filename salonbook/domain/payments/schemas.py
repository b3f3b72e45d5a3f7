"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .commission import PaymentType, SubscriptionPlan


class PaymentIntentRequest(BaseModel):
    """Schema for creating a booking payment"""

    booking_id: str
    payment_type: PaymentType = PaymentType.DEPOSIT


class PaymentIntentResponse(BaseModel):
    """Schema for a created payment"""

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


class PaymentResponse(BaseModel):
    """Schema for a stored payment"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    salon_id: str
    amount: int
    total_service_price: int
    remaining_amount: int
    commission: int
    salon_amount: int
    commission_rate: float
    currency: str
    status: str
    payment_type: str
    stripe_payment_intent_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class PaymentsPageResponse(BaseModel):
    """Schema for paginated payment history"""

    data: list[PaymentResponse]
    total: int
    page: int
    total_pages: int
    has_more: bool


class PaymentStatsResponse(BaseModel):
    """Schema for salon revenue statistics"""

    total_revenue: int
    total_commission: int
    net_revenue: int
    transaction_count: int
    average_transaction: int


class BalanceResponse(BaseModel):
    available_balance: int
    currency: str


class ConfirmPaymentRequest(BaseModel):
    stripe_payment_intent_id: str = Field(min_length=1)


class RefundRequest(BaseModel):
    reason: Optional[str] = None


class UpdatePlanRequest(BaseModel):
    """Schema for switching a salon's subscription plan"""

    plan: str

    @field_validator("plan")
    @classmethod
    def validate_plan(cls, v: str) -> str:
        allowed = {p.value for p in SubscriptionPlan}
        if v not in allowed:
            raise ValueError(f"plan must be one of: {', '.join(sorted(allowed))}")
        return v


class StripeAccountResponse(BaseModel):
    """Schema for a salon's Stripe account record"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    salon_id: str
    stripe_account_id: Optional[str] = None
    is_onboarded: bool
    charges_enabled: bool
    payouts_enabled: bool
    subscription_plan: str
    subscription_status: Optional[str] = None
