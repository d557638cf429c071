"""VolumeDiscountTier schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.volume_discount_tier import MeasurementType
from app.services.discounts.volume import validate_bands


class VolumeBand(BaseModel):
    min: Decimal = Field(ge=0)
    max: Decimal | None = None
    discount_percent: Decimal | None = Field(default=None, ge=0, le=100)
    discount_fixed: Decimal | None = Field(default=None, ge=0)
    label: str | None = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def validate_discount(self) -> Self:
        if (self.discount_percent is None) == (self.discount_fixed is None):
            raise ValueError("Exactly one of discount_percent or discount_fixed is required")
        return self


class VolumeTierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    measurement_type: MeasurementType
    service_type: str | None = Field(default=None, max_length=50)
    bands: list[VolumeBand] = Field(min_length=1)
    stackable: bool = False
    priority: int = 0

    @model_validator(mode="after")
    def validate_band_layout(self) -> Self:
        validate_bands([(band.min, band.max) for band in self.bands])
        return self


class VolumeTierUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    service_type: str | None = Field(default=None, max_length=50)
    bands: list[VolumeBand] | None = Field(default=None, min_length=1)
    stackable: bool | None = None
    priority: int | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def validate_band_layout(self) -> Self:
        if self.bands is not None:
            validate_bands([(band.min, band.max) for band in self.bands])
        return self


class VolumeTierResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    measurement_type: str
    service_type: str | None = None
    bands: list[VolumeBand]
    stackable: bool
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
