"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Salon
from .availability import ACTIVE_STATUSES


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: str) -> Optional[Booking]:
        """Get a booking by ID"""
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_salon(db: Session, salon_id: str) -> Optional[Salon]:
        """Get a salon by ID"""
        return db.query(Salon).filter(Salon.id == salon_id).first()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        """Create a new booking"""
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        """Update a booking with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(booking, key):
                setattr(booking, key, value)

        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_active_bookings(
        db: Session,
        salon_id: str,
        booking_date: date,
        coiffeur_id: Optional[str] = None,
    ) -> list[Booking]:
        """Pending and confirmed bookings of a salon on a date"""
        query = db.query(Booking).filter(
            Booking.salon_id == salon_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(ACTIVE_STATUSES),
        )
        if coiffeur_id:
            query = query.filter(Booking.coiffeur_id == coiffeur_id)
        return query.order_by(Booking.start_time.asc()).all()

    @staticmethod
    def get_client_bookings(
        db: Session, client_id: str, status: Optional[str], offset: int, limit: int
    ) -> tuple[list[Booking], int]:
        """One page of a client's bookings, most recent date first"""
        query = db.query(Booking).filter(Booking.client_id == client_id)
        if status:
            query = query.filter(Booking.status == status)

        total = query.count()
        rows = (
            query.order_by(Booking.booking_date.desc(), Booking.start_time.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_salon_bookings(
        db: Session,
        salon_id: str,
        status: Optional[str],
        booking_date: Optional[date],
        offset: int,
        limit: int,
    ) -> tuple[list[Booking], int]:
        """One page of a salon's bookings in agenda order"""
        query = db.query(Booking).filter(Booking.salon_id == salon_id)
        if status:
            query = query.filter(Booking.status == status)
        if booking_date:
            query = query.filter(Booking.booking_date == booking_date)

        total = query.count()
        rows = (
            query.order_by(Booking.booking_date.asc(), Booking.start_time.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_upcoming_bookings(db: Session, client_id: str, from_date: date, limit: int) -> list[Booking]:
        """Active bookings of a client from a date onwards"""
        return (
            db.query(Booking)
            .filter(
                Booking.client_id == client_id,
                Booking.booking_date >= from_date,
                Booking.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Booking.booking_date.asc(), Booking.start_time.asc())
            .limit(limit)
            .all()
        )
