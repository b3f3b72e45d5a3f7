import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth import get_current_user_id
from ..shared.validators import validate_sign_up

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class SignUpCheck(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None


class SignUpCheckResponse(BaseModel):
    is_valid: bool
    errors: dict[str, str]


@router.post("/validate", response_model=SignUpCheckResponse)
async def validate_sign_up_form(body: SignUpCheck):
    """Field-level validation of a sign-up form before it reaches the identity provider"""
    result = validate_sign_up(body.email, body.password, body.full_name, body.phone, body.role)
    if not result.is_valid:
        logger.info(f"⚠️ Sign-up form rejected on fields: {sorted(result.errors)}")
    return asdict(result)


@router.get("/me")
async def whoami(user_id: str = Depends(get_current_user_id)):
    """Identity of the bearer token's owner"""
    return {"user_id": user_id}
