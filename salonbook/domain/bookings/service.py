"""Booking service - Business logic for reservations"""

import logging
import math
from datetime import date, time
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import (
    InvalidStatusTransitionError,
    NotFoundError,
    PermissionDeniedError,
    RemoteOperationError,
    SlotUnavailableError,
)
from ...models import Booking, Salon
from ...shared.ownership import get_owned_salon
from .availability import day_schedule, find_conflicts, generate_slots
from .repository import BookingRepository
from .schemas import BookingCreate

logger = logging.getLogger(__name__)

BOOKINGS_PER_PAGE = 10

# Service-level lifecycle; webhooks write terminal states directly
ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

# Statuses only the salon side may set; clients can only cancel
OWNER_ONLY_STATUSES = {"confirmed", "completed"}


def _page(rows: list, total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "data": rows,
        "total": total,
        "page": page,
        "total_pages": total_pages,
        "has_more": page < total_pages,
    }


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def check_availability(
        self,
        salon_id: str,
        booking_date: date,
        start_time: time,
        end_time: time,
        coiffeur_id: Optional[str] = None,
    ) -> bool:
        """
        True when [start_time, end_time) overlaps no pending or confirmed booking.

        This is a read followed by a decision, not a lock: another booking can
        still be written between this check and the caller's insert.
        """
        existing = self.repo.get_active_bookings(self.db, salon_id, booking_date, coiffeur_id)
        conflicts = find_conflicts(existing, start_time, end_time)
        if conflicts:
            logger.debug(
                f"Slot {booking_date} {start_time}-{end_time} at salon {salon_id} "
                f"conflicts with {len(conflicts)} booking(s)"
            )
        return not conflicts

    def create_booking(self, data: BookingCreate, client_id: str) -> Booking:
        """Create a pending booking after an availability check"""
        if not self.check_availability(
            data.salon_id, data.booking_date, data.start_time, data.end_time, data.coiffeur_id
        ):
            raise SlotUnavailableError("This time slot is no longer available")

        try:
            booking = self.repo.create_booking(
                self.db,
                salon_id=data.salon_id,
                service_id=data.service_id,
                client_id=client_id,
                coiffeur_id=data.coiffeur_id,
                booking_date=data.booking_date,
                start_time=data.start_time,
                end_time=data.end_time,
                status="pending",
                total_price=data.total_price,
                payment_method=data.payment_method,
                notes=data.notes,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create booking for client {client_id}: {e}")
            raise RemoteOperationError(str(e)) from e

        logger.info(f"📅 Booking {booking.id} created for salon {data.salon_id} on {data.booking_date}")
        return booking

    def check_salon_owner(self, salon_id: str, owner_id: str) -> Salon:
        """Salon agendas are visible to the salon's owner only"""
        return get_owned_salon(self.db, salon_id, owner_id)

    def get_booking(self, booking_id: str, user_id: Optional[str] = None) -> Booking:
        """
        Get a booking.

        With a user_id, the booking is only returned to its client or to the
        owner of its salon; anyone else gets NotFoundError.
        """
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        if user_id is not None and user_id != booking.client_id and not self._is_salon_owner(booking, user_id):
            raise NotFoundError("Booking", booking_id)
        return booking

    def _is_salon_owner(self, booking: Booking, user_id: str) -> bool:
        salon = booking.salon or self.repo.get_salon(self.db, booking.salon_id)
        return salon is not None and salon.owner_id == user_id

    def get_client_bookings(self, client_id: str, status: Optional[str] = None, page: int = 1) -> dict:
        offset = (page - 1) * BOOKINGS_PER_PAGE
        rows, total = self.repo.get_client_bookings(self.db, client_id, status, offset, BOOKINGS_PER_PAGE)
        return _page(rows, total, page, BOOKINGS_PER_PAGE)

    def get_salon_bookings(
        self,
        salon_id: str,
        status: Optional[str] = None,
        booking_date: Optional[date] = None,
        page: int = 1,
    ) -> dict:
        offset = (page - 1) * BOOKINGS_PER_PAGE
        rows, total = self.repo.get_salon_bookings(
            self.db, salon_id, status, booking_date, offset, BOOKINGS_PER_PAGE
        )
        return _page(rows, total, page, BOOKINGS_PER_PAGE)

    def get_upcoming_bookings(self, client_id: str, limit: int = 5) -> list[Booking]:
        return self.repo.get_upcoming_bookings(self.db, client_id, date.today(), limit)

    def update_booking_status(self, booking_id: str, status: str, user_id: Optional[str] = None) -> Booking:
        """
        Move a booking along its lifecycle; re-applying the current status is a no-op.

        With a user_id, confirming and completing are reserved to the salon
        owner, while the client and the owner may both cancel.
        """
        booking = self.get_booking(booking_id, user_id)
        if user_id is not None and status in OWNER_ONLY_STATUSES and not self._is_salon_owner(booking, user_id):
            raise PermissionDeniedError(f"Only the salon can mark a booking {status}")

        if booking.status == status:
            return booking

        if status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
            raise InvalidStatusTransitionError(booking.status, status)

        try:
            booking = self.repo.update_booking(self.db, booking, status=status)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        logger.info(f"📅 Booking {booking_id} is now {status}")
        return booking

    def cancel_booking(self, booking_id: str, user_id: Optional[str] = None) -> Booking:
        return self.update_booking_status(booking_id, "cancelled", user_id)

    def confirm_booking(self, booking_id: str, user_id: Optional[str] = None) -> Booking:
        return self.update_booking_status(booking_id, "confirmed", user_id)

    def complete_booking(self, booking_id: str, user_id: Optional[str] = None) -> Booking:
        return self.update_booking_status(booking_id, "completed", user_id)

    def get_available_slots(self, salon_id: str, booking_date: date, duration_minutes: int) -> list[time]:
        """Bookable start times for a service duration on a date, 30 minutes apart"""
        salon = self.repo.get_salon(self.db, salon_id)
        if not salon:
            return []

        hours = day_schedule(salon.opening_hours, booking_date)
        if hours is None:
            return []

        busy = self.repo.get_active_bookings(self.db, salon_id, booking_date)
        return generate_slots(hours[0], hours[1], duration_minutes, busy)
