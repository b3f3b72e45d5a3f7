"""Promotion repository - Database operations for promotions and their usages"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, Promotion, PromotionUsage, Salon


class PromotionRepository:
    """Repository for promotion database operations"""

    @staticmethod
    def get_promotion_by_id(db: Session, promotion_id: str) -> Optional[Promotion]:
        return db.query(Promotion).filter(Promotion.id == promotion_id).first()

    @staticmethod
    def get_live_promotion_by_code(db: Session, code: str, now: datetime) -> Optional[Promotion]:
        """Active promotion with this code whose date window contains now"""
        return (
            db.query(Promotion)
            .filter(
                Promotion.code == code,
                Promotion.status == "active",
                Promotion.start_date <= now,
                Promotion.end_date >= now,
            )
            .first()
        )

    @staticmethod
    def create_promotion(db: Session, **promotion_data) -> Promotion:
        promotion = Promotion(**promotion_data)
        db.add(promotion)
        db.commit()
        db.refresh(promotion)
        return promotion

    @staticmethod
    def update_promotion(db: Session, promotion: Promotion, **updates) -> Promotion:
        """Update a promotion with provided fields"""
        for key, value in updates.items():
            if hasattr(promotion, key):
                setattr(promotion, key, value)

        db.commit()
        db.refresh(promotion)
        return promotion

    @staticmethod
    def delete_promotion(db: Session, promotion: Promotion) -> None:
        db.delete(promotion)
        db.commit()

    @staticmethod
    def get_salon_promotions(
        db: Session,
        salon_id: str,
        status: Optional[str],
        promotion_type: Optional[str],
        live_at: Optional[datetime],
        offset: int,
        limit: int,
    ) -> tuple[list[Promotion], int]:
        """One page of a salon's promotions, newest first"""
        query = db.query(Promotion).filter(Promotion.salon_id == salon_id)
        if status:
            query = query.filter(Promotion.status == status)
        if promotion_type:
            query = query.filter(Promotion.type == promotion_type)
        if live_at:
            query = query.filter(
                Promotion.status == "active",
                Promotion.start_date <= live_at,
                Promotion.end_date >= live_at,
            )

        total = query.count()
        rows = query.order_by(Promotion.created_at.desc()).offset(offset).limit(limit).all()
        return rows, total

    @staticmethod
    def _live_query(db: Session, now: datetime):
        return db.query(Promotion).filter(
            Promotion.status == "active",
            Promotion.start_date <= now,
            Promotion.end_date >= now,
        )

    @staticmethod
    def get_live_promotions(
        db: Session, now: datetime, city: Optional[str], offset: int, limit: int
    ) -> tuple[list[Promotion], int]:
        """One page of promotions running now, optionally limited to salons in a city"""
        query = PromotionRepository._live_query(db, now)
        if city:
            query = query.join(Salon, Salon.id == Promotion.salon_id).filter(Salon.city == city)

        total = query.count()
        rows = query.order_by(Promotion.created_at.desc()).offset(offset).limit(limit).all()
        return rows, total

    @staticmethod
    def get_featured_promotions(db: Session, now: datetime, limit: int) -> list[Promotion]:
        """Running promotions with the largest values first"""
        return (
            PromotionRepository._live_query(db, now)
            .order_by(Promotion.value.desc())
            .limit(limit)
            .all()
        )

    # ------------------------------------------------------------------
    # Usages
    # ------------------------------------------------------------------

    @staticmethod
    def count_user_usages(db: Session, promotion_id: str, user_id: str) -> int:
        return (
            db.query(PromotionUsage)
            .filter(PromotionUsage.promotion_id == promotion_id, PromotionUsage.user_id == user_id)
            .count()
        )

    @staticmethod
    def get_booking_usage(db: Session, booking_id: str) -> Optional[PromotionUsage]:
        return db.query(PromotionUsage).filter(PromotionUsage.booking_id == booking_id).first()

    @staticmethod
    def count_completed_bookings(db: Session, client_id: str, salon_id: Optional[str] = None) -> int:
        """Completed bookings of a client, at one salon or anywhere"""
        query = db.query(Booking).filter(Booking.client_id == client_id, Booking.status == "completed")
        if salon_id:
            query = query.filter(Booking.salon_id == salon_id)
        return query.count()

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_usage_totals(db: Session, promotion_id: str) -> tuple[int, int, int]:
        """(uses, total discount, distinct users) of a promotion"""
        uses, discount, users = (
            db.query(
                func.count(PromotionUsage.id),
                func.coalesce(func.sum(PromotionUsage.discount_applied), 0),
                func.count(func.distinct(PromotionUsage.user_id)),
            )
            .filter(PromotionUsage.promotion_id == promotion_id)
            .one()
        )
        return uses, int(discount), users

    @staticmethod
    def get_salon_usages(
        db: Session, salon_id: str, offset: int, limit: int
    ) -> tuple[list[PromotionUsage], int]:
        """One page of usages of a salon's promotions, newest first"""
        query = (
            db.query(PromotionUsage)
            .join(Promotion, Promotion.id == PromotionUsage.promotion_id)
            .filter(Promotion.salon_id == salon_id)
        )
        total = query.count()
        rows = query.order_by(PromotionUsage.created_at.desc()).offset(offset).limit(limit).all()
        return rows, total

    @staticmethod
    def get_user_usages(
        db: Session, user_id: str, offset: int, limit: int
    ) -> tuple[list[PromotionUsage], int]:
        """One page of a client's promotion usages, newest first"""
        query = db.query(PromotionUsage).filter(PromotionUsage.user_id == user_id)
        total = query.count()
        rows = query.order_by(PromotionUsage.created_at.desc()).offset(offset).limit(limit).all()
        return rows, total
