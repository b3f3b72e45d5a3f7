"""Coverage domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CoverageZoneCreate(BaseModel):
    """Schema for adding a coverage zone"""

    city: str = Field(min_length=1, max_length=120)
    postal_code: Optional[str] = Field(None, max_length=20)
    radius_km: float = Field(10.0, gt=0, le=500)
    additional_fee: int = Field(0, ge=0)  # cents
    center_latitude: Optional[float] = Field(None, ge=-90, le=90)
    center_longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def validate_center(self):
        if (self.center_latitude is None) != (self.center_longitude is None):
            raise ValueError("center_latitude and center_longitude must be set together")
        return self


class CoverageZoneUpdate(BaseModel):
    city: Optional[str] = Field(None, min_length=1, max_length=120)
    postal_code: Optional[str] = Field(None, max_length=20)
    radius_km: Optional[float] = Field(None, gt=0, le=500)
    additional_fee: Optional[int] = Field(None, ge=0)
    center_latitude: Optional[float] = Field(None, ge=-90, le=90)
    center_longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_active: Optional[bool] = None


class CoverageZoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    coiffeur_id: str
    city: str
    postal_code: Optional[str] = None
    radius_km: float
    additional_fee: int
    center_latitude: Optional[float] = None
    center_longitude: Optional[float] = None
    is_active: bool


class HomeServiceConfig(BaseModel):
    """Schema for a stylist's home-service settings"""

    enabled: bool
    fee: Optional[int] = Field(None, ge=0)
    min_distance: Optional[float] = Field(None, ge=0)
    max_distance: Optional[float] = Field(None, ge=0)


class HomeServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    offers_home_service: bool
    home_service_fee: int
    min_home_service_distance: Optional[float] = None
    max_home_service_distance: Optional[float] = None


class CoverageCheckResponse(BaseModel):
    covered: bool
    additional_fee: int
