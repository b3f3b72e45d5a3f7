"""Promotion router - FastAPI endpoints for salon promotions"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from ...errors import NotFoundError
from .discounts import PromotionStatus, PromotionType
from .schemas import (
    ApplyPromotionRequest,
    DiscountRequest,
    DiscountResponse,
    PromotionCheckRequest,
    PromotionCheckResponse,
    PromotionCreate,
    PromotionResponse,
    PromotionsPageResponse,
    PromotionStatsResponse,
    PromotionUpdate,
    PromotionUsageResponse,
    PromotionUsagesPageResponse,
)
from .service import PromotionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promotions", tags=["Promotions"])


def get_promotion_service(db: Session = Depends(get_db)) -> PromotionService:
    """Dependency injection for PromotionService"""
    return PromotionService(db)


# ============================================================================
# PUBLIC LISTINGS
# ============================================================================


@router.get("/active", response_model=PromotionsPageResponse)
async def get_active_promotions(
    city: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    service: PromotionService = Depends(get_promotion_service),
):
    """Promotions running now"""
    return service.get_active_promotions(city, page)


@router.get("/featured", response_model=list[PromotionResponse])
async def get_featured_promotions(
    limit: int = Query(5, ge=1, le=50),
    service: PromotionService = Depends(get_promotion_service),
):
    """Largest running promotions"""
    return service.get_featured_promotions(limit)


@router.get("/code/{code}", response_model=PromotionResponse)
async def get_promotion_by_code(
    code: str,
    service: PromotionService = Depends(get_promotion_service),
):
    """Look up a running promotion by its code"""
    promotion = service.get_promotion_by_code(code)
    if promotion is None:
        raise NotFoundError("Promotion code", code)
    return promotion


@router.get("/me/history", response_model=PromotionUsagesPageResponse)
async def get_my_promotion_history(
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    """Promotions used by the current user"""
    return service.get_user_promotion_history(user_id, page)


# ============================================================================
# SALON MANAGEMENT
# ============================================================================


@router.post("/salons/{salon_id}", response_model=PromotionResponse, status_code=201)
async def create_promotion(
    salon_id: str,
    body: PromotionCreate,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    """Create a promotion for one of the current user's salons"""
    return service.create_promotion(salon_id, body, user_id)


@router.get("/salons/{salon_id}", response_model=PromotionsPageResponse)
async def get_salon_promotions(
    salon_id: str,
    status: Optional[PromotionStatus] = Query(None),
    promotion_type: Optional[PromotionType] = Query(None, alias="type"),
    active_only: bool = Query(False),
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    """Promotions of a salon (owner only)"""
    return service.get_salon_promotions(
        salon_id,
        user_id,
        status.value if status else None,
        promotion_type.value if promotion_type else None,
        active_only,
        page,
    )


@router.get("/salons/{salon_id}/usages", response_model=PromotionUsagesPageResponse)
async def get_salon_promotion_usages(
    salon_id: str,
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    """Usage history of a salon's promotions (owner only)"""
    return service.get_salon_promotion_usages(salon_id, user_id, page)


@router.get("/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(
    promotion_id: str,
    service: PromotionService = Depends(get_promotion_service),
):
    return service.get_promotion(promotion_id)


@router.patch("/{promotion_id}", response_model=PromotionResponse)
async def update_promotion(
    promotion_id: str,
    body: PromotionUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    return service.update_promotion(promotion_id, body, user_id)


@router.delete("/{promotion_id}")
async def delete_promotion(
    promotion_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    service.delete_promotion(promotion_id, user_id)
    return {"message": "Promotion deleted"}


@router.post("/{promotion_id}/activate", response_model=PromotionResponse)
async def activate_promotion(
    promotion_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    return service.activate_promotion(promotion_id, user_id)


@router.post("/{promotion_id}/pause", response_model=PromotionResponse)
async def pause_promotion(
    promotion_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    return service.pause_promotion(promotion_id, user_id)


@router.post("/{promotion_id}/expire", response_model=PromotionResponse)
async def expire_promotion(
    promotion_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    return service.expire_promotion(promotion_id, user_id)


@router.get("/{promotion_id}/stats", response_model=PromotionStatsResponse)
async def get_promotion_stats(
    promotion_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    """Uses, total discount and distinct clients of a promotion (owner only)"""
    return asdict(service.get_promotion_stats(promotion_id, user_id))


# ============================================================================
# CLIENT CHECKOUT
# ============================================================================


@router.post("/{promotion_id}/validate", response_model=PromotionCheckResponse)
async def validate_promotion(
    promotion_id: str,
    body: PromotionCheckRequest,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    """Whether the current user may use a promotion on an amount"""
    return asdict(service.validate_promotion(promotion_id, user_id, body.service_id, body.amount))


@router.post("/{promotion_id}/discount", response_model=DiscountResponse)
async def calculate_discount(
    promotion_id: str,
    body: DiscountRequest,
    service: PromotionService = Depends(get_promotion_service),
):
    """Discount a promotion would grant on an amount"""
    promotion, discount = service.calculate_discount(promotion_id, body.amount)
    return {"promotion_id": promotion.id if promotion else None, **asdict(discount)}


@router.post("/{promotion_id}/apply", response_model=PromotionUsageResponse, status_code=201)
async def apply_promotion(
    promotion_id: str,
    body: ApplyPromotionRequest,
    user_id: str = Depends(get_current_user_id),
    service: PromotionService = Depends(get_promotion_service),
):
    """Apply a promotion to one of the current user's pending bookings"""
    return service.apply_promotion(promotion_id, user_id, body.booking_id)
