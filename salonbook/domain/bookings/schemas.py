"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

BookingStatus = Literal["pending", "confirmed", "completed", "cancelled"]
PaymentMethod = Literal["full", "deposit", "on_site"]


class BookingCreate(BaseModel):
    """Schema for creating a booking"""

    salon_id: str
    service_id: Optional[str] = None
    coiffeur_id: Optional[str] = None
    booking_date: date
    start_time: time
    end_time: time
    total_price: int = Field(ge=0)  # cents
    payment_method: PaymentMethod = "deposit"
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class AvailabilityQuery(BaseModel):
    """Schema for an availability check"""

    salon_id: str
    booking_date: date
    start_time: time
    end_time: time
    coiffeur_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityResponse(BaseModel):
    available: bool


class SlotsResponse(BaseModel):
    booking_date: date
    slots: list[str]


class BookingResponse(BaseModel):
    """Schema for booking response"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    salon_id: str
    service_id: Optional[str] = None
    client_id: str
    coiffeur_id: Optional[str] = None
    booking_date: date
    start_time: time
    end_time: time
    status: str
    total_price: int
    payment_method: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingsPageResponse(BaseModel):
    data: list[BookingResponse]
    total: int
    page: int
    total_pages: int
    has_more: bool
