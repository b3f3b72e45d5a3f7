"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Review, Salon


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_review_by_id(db: Session, review_id: str) -> Optional[Review]:
        """Get a review by ID"""
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def get_salon_ratings(db: Session, salon_id: str) -> list[int]:
        """Every rating left on a salon"""
        return [row.rating for row in db.query(Review.rating).filter(Review.salon_id == salon_id).all()]

    @staticmethod
    def get_salon_reviews(db: Session, salon_id: str) -> list[Review]:
        """Reviews of a salon, newest first"""
        return (
            db.query(Review)
            .filter(Review.salon_id == salon_id)
            .order_by(Review.created_at.desc())
            .all()
        )

    @staticmethod
    def get_client_reviews(db: Session, client_id: str) -> list[Review]:
        """Reviews written by a client, newest first"""
        return (
            db.query(Review)
            .filter(Review.client_id == client_id)
            .order_by(Review.created_at.desc())
            .all()
        )

    @staticmethod
    def find_client_review(db: Session, client_id: str, salon_id: str) -> Optional[Review]:
        """A client's review of a salon, if any"""
        return (
            db.query(Review)
            .filter(Review.client_id == client_id, Review.salon_id == salon_id)
            .first()
        )

    @staticmethod
    def create_review(db: Session, **review_data) -> Review:
        """Create a new review"""
        review = Review(**review_data)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def update_review(db: Session, review: Review, **updates) -> Review:
        """Update a review with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(review, key):
                setattr(review, key, value)

        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def delete_review(db: Session, review: Review) -> None:
        """Delete a review"""
        db.delete(review)
        db.commit()

    @staticmethod
    def update_salon_rating(db: Session, salon_id: str, rating: int, reviews_count: int) -> Optional[Salon]:
        """Write the derived rating fields of a salon"""
        salon = db.query(Salon).filter(Salon.id == salon_id).first()
        if not salon:
            return None

        salon.rating = rating
        salon.reviews_count = reviews_count
        db.commit()
        db.refresh(salon)
        return salon
