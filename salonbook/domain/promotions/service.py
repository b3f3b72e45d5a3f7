"""Promotion service - Business logic for salon promotions"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import InvalidPromotionError, NotFoundError, PromotionNotApplicableError, RemoteOperationError
from ...models import Promotion, PromotionUsage
from ...shared.ownership import get_owned_salon
from .discounts import DiscountCalculation, PromotionStatus, PromotionType, calculate_discount, weekday_number
from .repository import PromotionRepository
from .schemas import PromotionCreate, PromotionUpdate

logger = logging.getLogger(__name__)

PROMOTIONS_PER_PAGE = 10


@dataclass(frozen=True)
class PromotionCheck:
    is_valid: bool
    message: str


@dataclass(frozen=True)
class PromotionStats:
    total_uses: int
    total_discount_given: int
    unique_users: int


def _page(rows: list, total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "data": rows,
        "total": total,
        "page": page,
        "total_pages": total_pages,
        "has_more": page < total_pages,
    }


def _format_cents(amount: int) -> str:
    return f"{amount / 100:.2f} EUR"


class PromotionService:
    """Service layer for promotion business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PromotionRepository()

    # ------------------------------------------------------------------
    # Salon side
    # ------------------------------------------------------------------

    def get_promotion(self, promotion_id: str) -> Promotion:
        promotion = self.repo.get_promotion_by_id(self.db, promotion_id)
        if not promotion:
            raise NotFoundError("Promotion", promotion_id)
        return promotion

    def _get_own_promotion(self, promotion_id: str, owner_id: str) -> Promotion:
        promotion = self.get_promotion(promotion_id)
        try:
            get_owned_salon(self.db, promotion.salon_id, owner_id)
        except NotFoundError as e:
            raise NotFoundError("Promotion", promotion_id) from e
        return promotion

    def create_promotion(self, salon_id: str, data: PromotionCreate, owner_id: str) -> Promotion:
        """Create an active promotion for a salon the caller owns"""
        get_owned_salon(self.db, salon_id, owner_id)
        fields = data.model_dump()
        fields["type"] = data.type.value
        try:
            promotion = self.repo.create_promotion(
                self.db,
                salon_id=salon_id,
                status=PromotionStatus.ACTIVE.value,
                current_uses=0,
                **fields,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create promotion for salon {salon_id}: {e}")
            raise RemoteOperationError(str(e)) from e

        logger.info(f"🏷️ Promotion {promotion.id} created for salon {salon_id} ({promotion.type} {promotion.value})")
        return promotion

    def update_promotion(self, promotion_id: str, data: PromotionUpdate, owner_id: str) -> Promotion:
        promotion = self._get_own_promotion(promotion_id, owner_id)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        start_date = updates.get("start_date", promotion.start_date)
        end_date = updates.get("end_date", promotion.end_date)
        if end_date <= start_date:
            raise InvalidPromotionError("end_date must be after start_date")
        if promotion.type == PromotionType.PERCENTAGE.value and updates.get("value", promotion.value) > 100:
            raise InvalidPromotionError("a percentage promotion cannot exceed 100")

        return self._save(promotion, **updates)

    def _save(self, promotion: Promotion, **updates) -> Promotion:
        try:
            return self.repo.update_promotion(self.db, promotion, **updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

    def delete_promotion(self, promotion_id: str, owner_id: str) -> None:
        promotion = self._get_own_promotion(promotion_id, owner_id)
        try:
            self.repo.delete_promotion(self.db, promotion)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e
        logger.info(f"🗑️ Promotion {promotion_id} deleted")

    def set_status(self, promotion_id: str, status: str, owner_id: str) -> Promotion:
        promotion = self._get_own_promotion(promotion_id, owner_id)
        resolved = PromotionStatus(status)
        promotion = self._save(promotion, status=resolved.value)
        logger.info(f"🏷️ Promotion {promotion_id} is now {resolved.value}")
        return promotion

    def activate_promotion(self, promotion_id: str, owner_id: str) -> Promotion:
        return self.set_status(promotion_id, PromotionStatus.ACTIVE.value, owner_id)

    def pause_promotion(self, promotion_id: str, owner_id: str) -> Promotion:
        return self.set_status(promotion_id, PromotionStatus.PAUSED.value, owner_id)

    def expire_promotion(self, promotion_id: str, owner_id: str) -> Promotion:
        return self.set_status(promotion_id, PromotionStatus.EXPIRED.value, owner_id)

    def get_salon_promotions(
        self,
        salon_id: str,
        owner_id: str,
        status: Optional[str] = None,
        promotion_type: Optional[str] = None,
        active_only: bool = False,
        page: int = 1,
    ) -> dict:
        get_owned_salon(self.db, salon_id, owner_id)
        offset = (page - 1) * PROMOTIONS_PER_PAGE
        rows, total = self.repo.get_salon_promotions(
            self.db,
            salon_id,
            status,
            promotion_type,
            datetime.utcnow() if active_only else None,
            offset,
            PROMOTIONS_PER_PAGE,
        )
        return _page(rows, total, page, PROMOTIONS_PER_PAGE)

    def get_promotion_stats(self, promotion_id: str, owner_id: str) -> PromotionStats:
        self._get_own_promotion(promotion_id, owner_id)
        uses, discount, users = self.repo.get_usage_totals(self.db, promotion_id)
        return PromotionStats(total_uses=uses, total_discount_given=discount, unique_users=users)

    def get_salon_promotion_usages(self, salon_id: str, owner_id: str, page: int = 1) -> dict:
        get_owned_salon(self.db, salon_id, owner_id)
        offset = (page - 1) * PROMOTIONS_PER_PAGE
        rows, total = self.repo.get_salon_usages(self.db, salon_id, offset, PROMOTIONS_PER_PAGE)
        return _page(rows, total, page, PROMOTIONS_PER_PAGE)

    # ------------------------------------------------------------------
    # Client side
    # ------------------------------------------------------------------

    def get_active_promotions(self, city: Optional[str] = None, page: int = 1) -> dict:
        """Promotions running now, newest first"""
        offset = (page - 1) * PROMOTIONS_PER_PAGE
        rows, total = self.repo.get_live_promotions(self.db, datetime.utcnow(), city, offset, PROMOTIONS_PER_PAGE)
        return _page(rows, total, page, PROMOTIONS_PER_PAGE)

    def get_featured_promotions(self, limit: int = 5) -> list[Promotion]:
        return self.repo.get_featured_promotions(self.db, datetime.utcnow(), limit)

    def get_promotion_by_code(self, code: str) -> Optional[Promotion]:
        """Running promotion for a code, matched case-insensitively"""
        return self.repo.get_live_promotion_by_code(self.db, code.strip().upper(), datetime.utcnow())

    def get_user_promotion_history(self, user_id: str, page: int = 1) -> dict:
        offset = (page - 1) * PROMOTIONS_PER_PAGE
        rows, total = self.repo.get_user_usages(self.db, user_id, offset, PROMOTIONS_PER_PAGE)
        return _page(rows, total, page, PROMOTIONS_PER_PAGE)

    def validate_promotion(
        self,
        promotion_id: str,
        user_id: str,
        service_id: Optional[str] = None,
        amount: int = 0,
        now: Optional[datetime] = None,
    ) -> PromotionCheck:
        """
        Check every eligibility rule of a promotion for a client and amount.

        Rules run in a fixed order and the first failing one is reported:
        status, date window, minimum purchase, total uses, uses by this
        client, new-client and first-booking restrictions, weekday, service.
        """
        promotion = self.repo.get_promotion_by_id(self.db, promotion_id)
        if not promotion:
            return PromotionCheck(False, "Promotion not found")

        now = now or datetime.utcnow()

        if promotion.status != PromotionStatus.ACTIVE.value:
            return PromotionCheck(False, "This promotion is no longer active")

        if now < promotion.start_date:
            return PromotionCheck(False, "This promotion has not started yet")
        if now > promotion.end_date:
            return PromotionCheck(False, "This promotion has expired")

        if amount < promotion.min_purchase_amount:
            return PromotionCheck(False, f"Minimum purchase required: {_format_cents(promotion.min_purchase_amount)}")

        if promotion.max_uses and promotion.current_uses >= promotion.max_uses:
            return PromotionCheck(False, "This promotion has reached its maximum number of uses")

        if promotion.max_uses_per_user:
            used = self.repo.count_user_usages(self.db, promotion_id, user_id)
            if used >= promotion.max_uses_per_user:
                return PromotionCheck(False, "You have already used this promotion")

        if promotion.new_clients_only and self.repo.count_completed_bookings(self.db, user_id, promotion.salon_id):
            return PromotionCheck(False, "This promotion is reserved for new clients")

        if promotion.first_booking_only and self.repo.count_completed_bookings(self.db, user_id):
            return PromotionCheck(False, "This promotion is reserved for your first booking")

        if promotion.valid_days and weekday_number(now) not in promotion.valid_days:
            return PromotionCheck(False, "This promotion is not valid today")

        if service_id and promotion.applicable_service_ids and service_id not in promotion.applicable_service_ids:
            return PromotionCheck(False, "This promotion does not apply to this service")

        return PromotionCheck(True, "Promotion is valid")

    def calculate_discount(self, promotion_id: str, amount: int) -> tuple[Optional[Promotion], DiscountCalculation]:
        """Discount of a promotion on amount; an unknown promotion grants nothing"""
        promotion = self.repo.get_promotion_by_id(self.db, promotion_id)
        if not promotion:
            return None, DiscountCalculation(original_amount=amount, discount_amount=0, final_amount=amount)

        return promotion, calculate_discount(
            promotion.type, promotion.value, amount, promotion.max_discount_amount
        )

    def apply_promotion(
        self, promotion_id: str, user_id: str, booking_id: str, now: Optional[datetime] = None
    ) -> PromotionUsage:
        """
        Apply a promotion to one of the client's pending bookings.

        The discount is computed from the stored booking price and service.
        The usage row, the promotion's use counter and the reduced booking
        price are written in one transaction. A booking takes one promotion.
        """
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking or booking.client_id != user_id:
            raise NotFoundError("Booking", booking_id)

        promotion = self.get_promotion(promotion_id)
        if promotion.salon_id != booking.salon_id:
            raise PromotionNotApplicableError("This promotion belongs to another salon")
        if booking.status != "pending":
            raise PromotionNotApplicableError(f"Promotions cannot be applied to a {booking.status} booking")
        if self.repo.get_booking_usage(self.db, booking_id):
            raise PromotionNotApplicableError("A promotion was already applied to this booking")

        check = self.validate_promotion(promotion_id, user_id, booking.service_id, booking.total_price, now)
        if not check.is_valid:
            raise PromotionNotApplicableError(check.message)

        discount = calculate_discount(
            promotion.type, promotion.value, booking.total_price, promotion.max_discount_amount
        )

        try:
            usage = PromotionUsage(
                promotion_id=promotion_id,
                user_id=user_id,
                booking_id=booking_id,
                discount_applied=discount.discount_amount,
            )
            self.db.add(usage)
            promotion.current_uses = (promotion.current_uses or 0) + 1
            booking.total_price = discount.final_amount
            self.db.commit()
            self.db.refresh(usage)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to apply promotion {promotion_id} to booking {booking_id}: {e}")
            raise RemoteOperationError(str(e)) from e

        logger.info(
            f"🏷️ Promotion {promotion_id} applied to booking {booking_id}: "
            f"-{discount.discount_amount} ({discount.original_amount} -> {discount.final_amount})"
        )
        return usage
