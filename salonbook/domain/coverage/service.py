"""Coverage service - Home-service zones and point-in-zone checks"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import NotFoundError, RemoteOperationError
from ...models import CoverageZone, StylistDetails
from .geo import is_within_radius
from .repository import CoverageRepository
from .schemas import CoverageZoneCreate, CoverageZoneUpdate, HomeServiceConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoverageResult:
    covered: bool
    additional_fee: int


class CoverageService:
    """Service layer for stylist coverage zones"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CoverageRepository()

    def get_zones(self, coiffeur_id: str) -> list[CoverageZone]:
        return self.repo.get_active_zones(self.db, coiffeur_id)

    def _get_own_zone(self, zone_id: str, coiffeur_id: str) -> CoverageZone:
        zone = self.repo.get_zone_by_id(self.db, zone_id)
        if not zone or zone.coiffeur_id != coiffeur_id:
            raise NotFoundError("Coverage zone", zone_id)
        return zone

    def add_zone(self, coiffeur_id: str, data: CoverageZoneCreate) -> CoverageZone:
        try:
            zone = self.repo.create_zone(self.db, coiffeur_id=coiffeur_id, **data.model_dump())
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        logger.info(f"📍 Coverage zone {zone.id} ({zone.city}, {zone.radius_km} km) added for {coiffeur_id}")
        return zone

    def update_zone(self, zone_id: str, coiffeur_id: str, data: CoverageZoneUpdate) -> CoverageZone:
        zone = self._get_own_zone(zone_id, coiffeur_id)
        try:
            return self.repo.update_zone(self.db, zone, **data.model_dump(exclude_unset=True))
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

    def delete_zone(self, zone_id: str, coiffeur_id: str) -> None:
        zone = self._get_own_zone(zone_id, coiffeur_id)
        try:
            self.repo.delete_zone(self.db, zone)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

        logger.info(f"🗑️ Coverage zone {zone_id} deleted")

    def configure_home_service(self, user_id: str, config: HomeServiceConfig) -> StylistDetails:
        try:
            return self.repo.upsert_stylist_details(
                self.db,
                user_id,
                offers_home_service=config.enabled,
                home_service_fee=config.fee,
                min_home_service_distance=config.min_distance,
                max_home_service_distance=config.max_distance,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(str(e)) from e

    def check_coverage(self, coiffeur_id: str, latitude: float, longitude: float) -> CoverageResult:
        """
        Whether a stylist serves the given point, and the extra fee if so.

        Zones are tried in city order and the first one whose radius contains
        the point wins. Zones without a center are skipped. A stylist with no
        active zones falls back to their home-service flag and flat fee.
        """
        zones = self.repo.get_active_zones(self.db, coiffeur_id)

        if not zones:
            details = self.repo.get_stylist_details(self.db, coiffeur_id)
            if not details:
                return CoverageResult(covered=False, additional_fee=0)
            return CoverageResult(
                covered=bool(details.offers_home_service),
                additional_fee=details.home_service_fee or 0,
            )

        for zone in zones:
            if zone.center_latitude is None or zone.center_longitude is None:
                continue
            if is_within_radius(
                zone.center_latitude, zone.center_longitude, latitude, longitude, zone.radius_km
            ):
                return CoverageResult(covered=True, additional_fee=zone.additional_fee)

        return CoverageResult(covered=False, additional_fee=0)
