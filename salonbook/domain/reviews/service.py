"""Review service - Business logic for reviews and salon ratings"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import NotFoundError, RemoteOperationError
from ...models import Review, Salon
from .repository import ReviewRepository
from .schemas import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)


def compute_salon_rating(ratings: Iterable[int]) -> tuple[int, int]:
    """(rounded average, count) of a salon's ratings; (0, 0) without reviews"""
    ratings = list(ratings)
    if not ratings:
        return 0, 0

    average = Decimal(sum(ratings)) / len(ratings)
    return int(average.quantize(Decimal("1"), rounding=ROUND_HALF_UP)), len(ratings)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def update_salon_rating(self, salon_id: str) -> Optional[Salon]:
        """
        Recompute a salon's rating and review count from all of its reviews.

        Runs after every create, update and delete so the displayed rating
        always matches the current review set.
        """
        rating, count = compute_salon_rating(self.repo.get_salon_ratings(self.db, salon_id))
        try:
            salon = self.repo.update_salon_rating(self.db, salon_id, rating, count)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        if salon is None:
            logger.warning(f"⚠️ Cannot update rating of unknown salon {salon_id}")
        else:
            logger.info(f"⭐ Salon {salon_id} rating={rating} ({count} reviews)")
        return salon

    def _get_own_review(self, review_id: str, client_id: str) -> Review:
        review = self.repo.get_review_by_id(self.db, review_id)
        if not review or review.client_id != client_id:
            raise NotFoundError("Review", review_id)
        return review

    def create_review(self, data: ReviewCreate, client_id: str) -> Review:
        try:
            review = self.repo.create_review(
                self.db,
                salon_id=data.salon_id,
                client_id=client_id,
                booking_id=data.booking_id,
                rating=data.rating,
                comment=data.comment,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        self.update_salon_rating(review.salon_id)
        return review

    def update_review(self, review_id: str, data: ReviewUpdate, client_id: str) -> Review:
        review = self._get_own_review(review_id, client_id)
        try:
            review = self.repo.update_review(self.db, review, rating=data.rating, comment=data.comment)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        self.update_salon_rating(review.salon_id)
        return review

    def delete_review(self, review_id: str, client_id: str) -> None:
        review = self._get_own_review(review_id, client_id)
        salon_id = review.salon_id
        try:
            self.repo.delete_review(self.db, review)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        self.update_salon_rating(salon_id)

    def get_salon_reviews(self, salon_id: str) -> list[Review]:
        return self.repo.get_salon_reviews(self.db, salon_id)

    def get_client_reviews(self, client_id: str) -> list[Review]:
        return self.repo.get_client_reviews(self.db, client_id)

    def has_client_reviewed(self, client_id: str, salon_id: str) -> bool:
        return self.repo.find_client_review(self.db, client_id, salon_id) is not None
