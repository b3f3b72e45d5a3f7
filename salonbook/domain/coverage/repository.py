"""Coverage repository - Database operations for home-service zones"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import CoverageZone, StylistDetails


class CoverageRepository:
    """Repository for coverage zone and stylist settings operations"""

    @staticmethod
    def get_zone_by_id(db: Session, zone_id: str) -> Optional[CoverageZone]:
        return db.query(CoverageZone).filter(CoverageZone.id == zone_id).first()

    @staticmethod
    def get_active_zones(db: Session, coiffeur_id: str) -> list[CoverageZone]:
        """Active zones of a stylist ordered by city"""
        return (
            db.query(CoverageZone)
            .filter(CoverageZone.coiffeur_id == coiffeur_id, CoverageZone.is_active.is_(True))
            .order_by(CoverageZone.city.asc())
            .all()
        )

    @staticmethod
    def create_zone(db: Session, **zone_data) -> CoverageZone:
        zone = CoverageZone(**zone_data)
        db.add(zone)
        db.commit()
        db.refresh(zone)
        return zone

    @staticmethod
    def update_zone(db: Session, zone: CoverageZone, **updates) -> CoverageZone:
        """Update a zone with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(zone, key):
                setattr(zone, key, value)

        db.commit()
        db.refresh(zone)
        return zone

    @staticmethod
    def delete_zone(db: Session, zone: CoverageZone) -> None:
        db.delete(zone)
        db.commit()

    @staticmethod
    def get_stylist_details(db: Session, user_id: str) -> Optional[StylistDetails]:
        return db.query(StylistDetails).filter(StylistDetails.user_id == user_id).first()

    @staticmethod
    def upsert_stylist_details(db: Session, user_id: str, **values) -> StylistDetails:
        """Create or update the home-service settings of a stylist"""
        details = db.query(StylistDetails).filter(StylistDetails.user_id == user_id).first()
        if not details:
            details = StylistDetails(user_id=user_id)
            db.add(details)

        for key, value in values.items():
            if value is not None and hasattr(details, key):
                setattr(details, key, value)

        db.commit()
        db.refresh(details)
        return details
