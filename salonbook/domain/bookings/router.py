"""Booking router - FastAPI endpoints for reservations"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from .schemas import (
    AvailabilityQuery,
    AvailabilityResponse,
    BookingCreate,
    BookingResponse,
    BookingsPageResponse,
    BookingStatus,
    BookingStatusUpdate,
    SlotsResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    body: AvailabilityQuery,
    service: BookingService = Depends(get_booking_service),
):
    """Check whether a time window is free (advisory, not a reservation)"""
    available = service.check_availability(
        body.salon_id, body.booking_date, body.start_time, body.end_time, body.coiffeur_id
    )
    return {"available": available}


@router.get("/salons/{salon_id}/slots", response_model=SlotsResponse)
async def get_available_slots(
    salon_id: str,
    booking_date: date = Query(..., alias="date"),
    duration: int = Query(60, ge=5, le=600),
    service: BookingService = Depends(get_booking_service),
):
    """Free start times for a service duration on a date"""
    slots = service.get_available_slots(salon_id, booking_date, duration)
    return {"booking_date": booking_date, "slots": [s.strftime("%H:%M") for s in slots]}


# ============================================================================
# CORE OPERATIONS
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    body: BookingCreate,
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking for the current user"""
    return service.create_booking(body, user_id)


@router.get("/me", response_model=BookingsPageResponse)
async def get_my_bookings(
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings of the current user"""
    return service.get_client_bookings(user_id, status, page)


@router.get("/me/upcoming", response_model=list[BookingResponse])
async def get_my_upcoming_bookings(
    limit: int = Query(5, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Next active bookings of the current user"""
    return service.get_upcoming_bookings(user_id, limit)


@router.get("/salons/{salon_id}", response_model=BookingsPageResponse)
async def get_salon_bookings(
    salon_id: str,
    status: Optional[BookingStatus] = Query(None),
    booking_date: Optional[date] = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Agenda of a salon (owner only)"""
    service.check_salon_owner(salon_id, user_id)
    return service.get_salon_bookings(salon_id, status, booking_date, page)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Get a booking of the current user or of their salon"""
    return service.get_booking(booking_id, user_id)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm or complete (salon owner) or cancel (client or salon owner) a booking"""
    return service.update_booking_status(booking_id, body.status, user_id)
