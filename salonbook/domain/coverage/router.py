"""Coverage router - FastAPI endpoints for home-service zones"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from .schemas import (
    CoverageCheckResponse,
    CoverageZoneCreate,
    CoverageZoneResponse,
    CoverageZoneUpdate,
    HomeServiceConfig,
    HomeServiceResponse,
)
from .service import CoverageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coverage", tags=["Coverage"])


def get_coverage_service(db: Session = Depends(get_db)) -> CoverageService:
    """Dependency injection for CoverageService"""
    return CoverageService(db)


@router.get("/stylists/{coiffeur_id}/check", response_model=CoverageCheckResponse)
async def check_coverage(
    coiffeur_id: str,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    service: CoverageService = Depends(get_coverage_service),
):
    """Whether a stylist travels to a location"""
    return asdict(service.check_coverage(coiffeur_id, lat, lon))


@router.get("/stylists/{coiffeur_id}/zones", response_model=list[CoverageZoneResponse])
async def get_zones(
    coiffeur_id: str,
    service: CoverageService = Depends(get_coverage_service),
):
    """Active coverage zones of a stylist"""
    return service.get_zones(coiffeur_id)


@router.post("/zones", response_model=CoverageZoneResponse, status_code=201)
async def add_zone(
    body: CoverageZoneCreate,
    user_id: str = Depends(get_current_user_id),
    service: CoverageService = Depends(get_coverage_service),
):
    """Add a coverage zone for the current stylist"""
    return service.add_zone(user_id, body)


@router.patch("/zones/{zone_id}", response_model=CoverageZoneResponse)
async def update_zone(
    zone_id: str,
    body: CoverageZoneUpdate,
    user_id: str = Depends(get_current_user_id),
    service: CoverageService = Depends(get_coverage_service),
):
    return service.update_zone(zone_id, user_id, body)


@router.delete("/zones/{zone_id}")
async def delete_zone(
    zone_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CoverageService = Depends(get_coverage_service),
):
    service.delete_zone(zone_id, user_id)
    return {"message": "Coverage zone deleted"}


@router.put("/home-service", response_model=HomeServiceResponse)
async def configure_home_service(
    body: HomeServiceConfig,
    user_id: str = Depends(get_current_user_id),
    service: CoverageService = Depends(get_coverage_service),
):
    """Enable or configure home service for the current stylist"""
    return service.configure_home_service(user_id, body)
