"""
Commission engine

Pure money arithmetic for bookings. All amounts are integer cents; fractions
are computed with Decimal and rounded half-up, so a price never picks up
float drift on its way to the payment processor.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional, Union

# Share of the service price collected upfront to secure a booking
DEPOSIT_RATE = Decimal("0.20")


class SubscriptionPlan(str, Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    PREMIUM = "premium"


class PaymentType(str, Enum):
    DEPOSIT = "deposit"
    FULL = "full"


# Platform share of the paid amount, by salon plan. Must decrease with the tier.
COMMISSION_RATES = {
    SubscriptionPlan.FREE: Decimal("0.20"),
    SubscriptionPlan.STARTER: Decimal("0.15"),
    SubscriptionPlan.PRO: Decimal("0.12"),
    SubscriptionPlan.PREMIUM: Decimal("0.10"),
}

DEFAULT_COMMISSION_RATE = COMMISSION_RATES[SubscriptionPlan.FREE]


@dataclass(frozen=True)
class DepositCommissionResult:
    deposit_amount: int
    commission: int
    salon_deposit_amount: int
    commission_rate: Decimal


@dataclass(frozen=True)
class PaymentSplit:
    """What the client pays now, and how that amount is divided"""

    payment_type: PaymentType
    pay_amount: int
    deposit_amount: int
    remaining_amount: int
    commission: int
    salon_amount: int
    commission_rate: Decimal


@dataclass(frozen=True)
class PaymentStats:
    total_revenue: int = 0
    total_commission: int = 0
    net_revenue: int = 0
    transaction_count: int = 0
    average_transaction: int = 0


def round_half_up(value: Union[Decimal, int]) -> int:
    """Round to the nearest whole cent, .5 going away from zero"""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve_plan(plan: Optional[Union[str, SubscriptionPlan]]) -> SubscriptionPlan:
    """Map a stored plan value onto a known plan; anything unrecognized is the free plan"""
    if isinstance(plan, SubscriptionPlan):
        return plan
    try:
        return SubscriptionPlan((plan or "").strip().lower())
    except ValueError:
        return SubscriptionPlan.FREE


def get_commission_rate(plan: Optional[Union[str, SubscriptionPlan]]) -> Decimal:
    return COMMISSION_RATES.get(resolve_plan(plan), DEFAULT_COMMISSION_RATE)


def calculate_deposit(total_service_price: int) -> int:
    """Deposit owed at booking time for a service price, in cents"""
    return round_half_up(Decimal(total_service_price) * DEPOSIT_RATE)


def calculate_deposit_commission(
    total_service_price: int, plan: Union[str, SubscriptionPlan] = SubscriptionPlan.FREE
) -> DepositCommissionResult:
    """
    Split the booking deposit between the platform and the salon.

    The salon share is derived by subtraction so that
    commission + salon_deposit_amount == deposit_amount for every input.
    """
    deposit_amount = calculate_deposit(total_service_price)
    commission_rate = get_commission_rate(plan)
    commission = round_half_up(deposit_amount * commission_rate)

    return DepositCommissionResult(
        deposit_amount=deposit_amount,
        commission=commission,
        salon_deposit_amount=deposit_amount - commission,
        commission_rate=commission_rate,
    )


def calculate_payment_split(
    total_service_price: int,
    plan: Union[str, SubscriptionPlan] = SubscriptionPlan.FREE,
    payment_type: Union[str, PaymentType] = PaymentType.DEPOSIT,
) -> PaymentSplit:
    """
    Work out the amount charged now for a booking.

    Deposit bookings charge the deposit and leave the rest to be paid on site.
    Full bookings charge the whole price. The plan rate is applied to whatever
    is charged, in both cases.
    """
    payment_type = PaymentType(payment_type)
    deposit_amount = calculate_deposit(total_service_price)

    if payment_type is PaymentType.FULL:
        pay_amount = total_service_price
        remaining_amount = 0
    else:
        pay_amount = deposit_amount
        remaining_amount = total_service_price - deposit_amount

    commission_rate = get_commission_rate(plan)
    commission = round_half_up(pay_amount * commission_rate)

    return PaymentSplit(
        payment_type=payment_type,
        pay_amount=pay_amount,
        deposit_amount=deposit_amount,
        remaining_amount=remaining_amount,
        commission=commission,
        salon_amount=pay_amount - commission,
        commission_rate=commission_rate,
    )


def aggregate_payment_stats(payments: Iterable) -> PaymentStats:
    """Totals over payment rows (anything with .amount and .commission)"""
    total_revenue = 0
    total_commission = 0
    count = 0
    for payment in payments:
        total_revenue += payment.amount or 0
        total_commission += payment.commission or 0
        count += 1

    if count == 0:
        return PaymentStats()

    return PaymentStats(
        total_revenue=total_revenue,
        total_commission=total_commission,
        net_revenue=total_revenue - total_commission,
        transaction_count=count,
        average_transaction=round_half_up(Decimal(total_revenue) / count),
    )
