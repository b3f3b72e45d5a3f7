"""Salon ownership checks shared by the salon-side services"""

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Salon


def get_owned_salon(db: Session, salon_id: str, owner_id: str) -> Salon:
    """
    Salon owned by owner_id.

    Salons owned by someone else are reported as not found, the same way a
    missing salon is.
    """
    salon = db.query(Salon).filter(Salon.id == salon_id, Salon.owner_id == owner_id).first()
    if not salon:
        raise NotFoundError("Salon", salon_id)
    return salon
