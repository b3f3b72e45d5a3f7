"""
Promotion discounts

Pure arithmetic on integer cents. Percentage discounts go through Decimal and
round half-up, like the commission engine.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from ..payments.commission import round_half_up


class PromotionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SERVICE = "free_service"


class PromotionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"


@dataclass(frozen=True)
class DiscountCalculation:
    original_amount: int
    discount_amount: int
    final_amount: int


def calculate_discount(
    promotion_type: Union[str, PromotionType],
    value: int,
    amount: int,
    max_discount_amount: Optional[int] = None,
) -> DiscountCalculation:
    """
    Discount granted on amount (cents).

    The discount is capped by max_discount_amount when one is set, and never
    exceeds the amount itself.
    """
    promotion_type = PromotionType(promotion_type)

    if promotion_type is PromotionType.PERCENTAGE:
        discount = round_half_up(Decimal(amount) * Decimal(value) / 100)
    elif promotion_type is PromotionType.FIXED_AMOUNT:
        discount = value
    else:
        discount = amount

    if max_discount_amount and discount > max_discount_amount:
        discount = max_discount_amount
    discount = max(0, min(discount, amount))

    return DiscountCalculation(
        original_amount=amount,
        discount_amount=discount,
        final_amount=amount - discount,
    )


def weekday_number(moment: datetime) -> int:
    """Day of the week with Sunday = 0 and Saturday = 6"""
    return (moment.weekday() + 1) % 7
