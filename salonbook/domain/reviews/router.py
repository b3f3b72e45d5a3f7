"""Review router - FastAPI endpoints for reviews"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from ...errors import NotFoundError
from .schemas import (
    HasReviewedResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    SalonRatingResponse,
)
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    body: ReviewCreate,
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
):
    """Leave a review on a salon"""
    return service.create_review(body, user_id)


@router.patch("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    body: ReviewUpdate,
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
):
    """Edit one of the current user's reviews"""
    return service.update_review(review_id, body, user_id)


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
):
    """Delete one of the current user's reviews"""
    service.delete_review(review_id, user_id)
    return {"message": "Review deleted"}


@router.get("/me", response_model=list[ReviewResponse])
async def get_my_reviews(
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
):
    """Reviews written by the current user"""
    return service.get_client_reviews(user_id)


@router.get("/salons/{salon_id}", response_model=list[ReviewResponse])
async def get_salon_reviews(
    salon_id: str,
    service: ReviewService = Depends(get_review_service),
):
    """Public reviews of a salon"""
    return service.get_salon_reviews(salon_id)


@router.get("/salons/{salon_id}/mine", response_model=HasReviewedResponse)
async def has_reviewed(
    salon_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
):
    """Whether the current user already reviewed a salon"""
    return {"has_reviewed": service.has_client_reviewed(user_id, salon_id)}


@router.post("/salons/{salon_id}/recompute", response_model=SalonRatingResponse)
async def recompute_salon_rating(
    salon_id: str,
    _user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
):
    """Recompute a salon's rating from its reviews"""
    salon = service.update_salon_rating(salon_id)
    if salon is None:
        raise NotFoundError("Salon", salon_id)
    return {"salon_id": salon.id, "rating": salon.rating, "reviews_count": salon.reviews_count}
