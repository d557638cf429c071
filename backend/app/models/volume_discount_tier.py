"""VolumeDiscountTier model: banded discounts keyed by a measurement."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


class MeasurementType(str, Enum):
    AMOUNT = "amount"
    QUANTITY = "quantity"
    SQFT = "sqft"


class VolumeDiscountTier(Base):
    """A volume tier configuration.

    ``bands`` is a list of ``{min, max, discount_percent, discount_fixed, label}`` objects that
    partition the measurement domain into half-open ``[min, max)`` intervals; only the last
    band may have ``max = null``.
    """

    __tablename__ = "volume_discount_tiers"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    measurement_type = Column(String(20), nullable=False)
    service_type = Column(String(50), nullable=True)
    bands = Column(JSON, nullable=False, default=list)
    stackable = Column(Boolean, nullable=False, default=False)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
