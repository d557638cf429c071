"""SeasonalCampaign repository for data access."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.seasonal_campaign import SeasonalCampaign
from app.schemas.seasonal_campaign import SeasonalCampaignCreate, SeasonalCampaignUpdate


class SeasonalCampaignRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
        order_by: str | None = None,
    ) -> list[SeasonalCampaign]:
        query = self.db.query(SeasonalCampaign).filter(
            SeasonalCampaign.organization_id == organization_id
        )
        if is_active is not None:
            query = query.filter(SeasonalCampaign.is_active == is_active)
        query = apply_order_by(query, SeasonalCampaign, order_by, default_field="starts_at")
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID) -> int:
        return (
            self.db.query(SeasonalCampaign)
            .filter(SeasonalCampaign.organization_id == organization_id)
            .count()
        )

    def get_by_id(self, campaign_id: UUID, organization_id: UUID) -> SeasonalCampaign | None:
        return (
            self.db.query(SeasonalCampaign)
            .filter(
                SeasonalCampaign.id == campaign_id,
                SeasonalCampaign.organization_id == organization_id,
            )
            .first()
        )

    def get_candidates_as_of(
        self, organization_id: UUID, as_of: datetime
    ) -> list[SeasonalCampaign]:
        """Active campaigns running at ``as_of``, plus recurring ones that already started."""
        return (
            self.db.query(SeasonalCampaign)
            .filter(
                SeasonalCampaign.organization_id == organization_id,
                SeasonalCampaign.is_active.is_(True),
                SeasonalCampaign.starts_at <= as_of,
                or_(SeasonalCampaign.is_recurring.is_(True), SeasonalCampaign.ends_at > as_of),
            )
            .order_by(SeasonalCampaign.ends_at.asc())
            .all()
        )

    def create(self, data: SeasonalCampaignCreate, organization_id: UUID) -> SeasonalCampaign:
        values = data.model_dump()
        values["discount_type"] = data.discount_type.value
        if data.recurrence_type is not None:
            values["recurrence_type"] = data.recurrence_type.value
        campaign = SeasonalCampaign(organization_id=organization_id, **values)
        self.db.add(campaign)
        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def update(
        self, campaign_id: UUID, data: SeasonalCampaignUpdate, organization_id: UUID
    ) -> SeasonalCampaign | None:
        campaign = self.get_by_id(campaign_id, organization_id)
        if not campaign:
            return None
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("recurrence_type"):
            update_data["recurrence_type"] = update_data["recurrence_type"].value
        for key, value in update_data.items():
            setattr(campaign, key, value)
        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def deactivate(self, campaign_id: UUID, organization_id: UUID) -> SeasonalCampaign | None:
        campaign = self.get_by_id(campaign_id, organization_id)
        if not campaign:
            return None
        campaign.is_active = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def record_application(self, campaign_id: UUID, discount_amount: Decimal) -> None:
        """Bump application counters. Does not commit."""
        self.db.query(SeasonalCampaign).filter(SeasonalCampaign.id == campaign_id).update(
            {
                SeasonalCampaign.times_applied: SeasonalCampaign.times_applied + 1,
                SeasonalCampaign.total_discount_given: (
                    SeasonalCampaign.total_discount_given + discount_amount
                ),
            },
            synchronize_session=False,
        )
