"""VolumeDiscountTier repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.volume_discount_tier import VolumeDiscountTier
from app.schemas.volume_tier import VolumeTierCreate, VolumeTierUpdate


class VolumeTierRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
        order_by: str | None = None,
    ) -> list[VolumeDiscountTier]:
        query = self.db.query(VolumeDiscountTier).filter(
            VolumeDiscountTier.organization_id == organization_id
        )
        if is_active is not None:
            query = query.filter(VolumeDiscountTier.is_active == is_active)
        query = apply_order_by(query, VolumeDiscountTier, order_by, default_field="priority")
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID) -> int:
        return (
            self.db.query(VolumeDiscountTier)
            .filter(VolumeDiscountTier.organization_id == organization_id)
            .count()
        )

    def get_by_id(self, tier_id: UUID, organization_id: UUID) -> VolumeDiscountTier | None:
        return (
            self.db.query(VolumeDiscountTier)
            .filter(
                VolumeDiscountTier.id == tier_id,
                VolumeDiscountTier.organization_id == organization_id,
            )
            .first()
        )

    def get_active(self, organization_id: UUID) -> list[VolumeDiscountTier]:
        return (
            self.db.query(VolumeDiscountTier)
            .filter(
                VolumeDiscountTier.organization_id == organization_id,
                VolumeDiscountTier.is_active.is_(True),
            )
            .order_by(VolumeDiscountTier.priority.desc(), VolumeDiscountTier.created_at.asc())
            .all()
        )

    def create(self, data: VolumeTierCreate, organization_id: UUID) -> VolumeDiscountTier:
        tier = VolumeDiscountTier(
            organization_id=organization_id,
            name=data.name,
            description=data.description,
            measurement_type=data.measurement_type.value,
            service_type=data.service_type,
            bands=[band.model_dump(mode="json") for band in data.bands],
            stackable=data.stackable,
            priority=data.priority,
        )
        self.db.add(tier)
        self.db.commit()
        self.db.refresh(tier)
        return tier

    def update(
        self, tier_id: UUID, data: VolumeTierUpdate, organization_id: UUID
    ) -> VolumeDiscountTier | None:
        tier = self.get_by_id(tier_id, organization_id)
        if not tier:
            return None
        update_data = data.model_dump(exclude_unset=True, exclude={"bands"})
        if data.bands is not None:
            update_data["bands"] = [band.model_dump(mode="json") for band in data.bands]
        for key, value in update_data.items():
            setattr(tier, key, value)
        self.db.commit()
        self.db.refresh(tier)
        return tier

    def deactivate(self, tier_id: UUID, organization_id: UUID) -> VolumeDiscountTier | None:
        tier = self.get_by_id(tier_id, organization_id)
        if not tier:
            return None
        tier.is_active = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(tier)
        return tier
