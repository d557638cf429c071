"""DiscountSettings repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.models.discount_settings import DiscountSettings
from app.schemas.discount_settings import DiscountSettingsUpsert


class DiscountSettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_organization(self, organization_id: UUID) -> DiscountSettings | None:
        return (
            self.db.query(DiscountSettings)
            .filter(DiscountSettings.organization_id == organization_id)
            .first()
        )

    def upsert(self, organization_id: UUID, data: DiscountSettingsUpsert) -> DiscountSettings:
        decimal_fields = {
            "max_combined_percent",
            "approval_threshold_percent",
            "approval_threshold_amount",
            "approval_for_orders_over",
        }
        values = data.model_dump(mode="json", exclude=decimal_fields | {"role_limits"})
        values.update(data.model_dump(include=decimal_fields))
        if data.role_limits is not None:
            values["role_limits"] = {
                role: limit.model_dump(mode="json") for role, limit in data.role_limits.items()
            }
        settings_row = self.get_by_organization(organization_id)
        if settings_row is None:
            settings_row = DiscountSettings(organization_id=organization_id, **values)
            self.db.add(settings_row)
        else:
            for key, value in values.items():
                setattr(settings_row, key, value)
        self.db.commit()
        self.db.refresh(settings_row)
        return settings_row
