"""Promotion domain schemas - Pydantic models for validation"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .discounts import PromotionType


def _normalize_code(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().upper()
    return v or None


def _naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Dates are stored as naive UTC"""
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


def _check_days(v: Optional[list[int]]) -> Optional[list[int]]:
    if v is None:
        return None
    if any(day < 0 or day > 6 for day in v):
        raise ValueError("valid_days must hold weekday numbers from 0 (Sunday) to 6 (Saturday)")
    # every day selected is the same as no restriction
    days = sorted(set(v))
    return None if len(days) == 7 else days


class PromotionCreate(BaseModel):
    """Schema for creating a promotion"""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    code: Optional[str] = Field(None, max_length=50)
    type: PromotionType
    value: int = Field(gt=0)  # whole percent, or cents
    max_discount_amount: Optional[int] = Field(None, gt=0)
    min_purchase_amount: int = Field(0, ge=0)
    start_date: datetime
    end_date: datetime
    max_uses: Optional[int] = Field(None, ge=1)
    max_uses_per_user: Optional[int] = Field(1, ge=1)
    new_clients_only: bool = False
    first_booking_only: bool = False
    valid_days: Optional[list[int]] = None
    applicable_service_ids: Optional[list[str]] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_code(v)

    @field_validator("valid_days")
    @classmethod
    def validate_valid_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        return _check_days(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)

    @model_validator(mode="after")
    def validate_promotion(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if self.type == PromotionType.PERCENTAGE and self.value > 100:
            raise ValueError("a percentage promotion cannot exceed 100")
        return self


class PromotionUpdate(BaseModel):
    """Schema for updating a promotion; omitted fields are left unchanged"""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    code: Optional[str] = Field(None, max_length=50)
    value: Optional[int] = Field(None, gt=0)
    max_discount_amount: Optional[int] = Field(None, gt=0)
    min_purchase_amount: Optional[int] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    max_uses_per_user: Optional[int] = Field(None, ge=1)
    new_clients_only: Optional[bool] = None
    first_booking_only: Optional[bool] = None
    valid_days: Optional[list[int]] = None
    applicable_service_ids: Optional[list[str]] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_code(v)

    @field_validator("valid_days")
    @classmethod
    def validate_valid_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        return _check_days(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class PromotionResponse(BaseModel):
    """Schema for promotion response"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    salon_id: str
    title: str
    description: Optional[str] = None
    code: Optional[str] = None
    type: str
    value: int
    max_discount_amount: Optional[int] = None
    min_purchase_amount: int
    start_date: datetime
    end_date: datetime
    status: str
    max_uses: Optional[int] = None
    current_uses: int
    max_uses_per_user: Optional[int] = None
    new_clients_only: bool
    first_booking_only: bool
    valid_days: Optional[list[int]] = None
    applicable_service_ids: Optional[list[str]] = None
    created_at: Optional[datetime] = None


class PromotionsPageResponse(BaseModel):
    data: list[PromotionResponse]
    total: int
    page: int
    total_pages: int
    has_more: bool


class PromotionCheckRequest(BaseModel):
    service_id: Optional[str] = None
    amount: int = Field(0, ge=0)  # cents


class PromotionCheckResponse(BaseModel):
    is_valid: bool
    message: str


class DiscountRequest(BaseModel):
    amount: int = Field(ge=0)  # cents


class DiscountResponse(BaseModel):
    promotion_id: Optional[str] = None
    original_amount: int
    discount_amount: int
    final_amount: int


class ApplyPromotionRequest(BaseModel):
    booking_id: str


class PromotionUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    promotion_id: str
    user_id: str
    booking_id: Optional[str] = None
    discount_applied: int
    created_at: Optional[datetime] = None


class PromotionUsagesPageResponse(BaseModel):
    data: list[PromotionUsageResponse]
    total: int
    page: int
    total_pages: int
    has_more: bool


class PromotionStatsResponse(BaseModel):
    total_uses: int
    total_discount_given: int
    unique_users: int