"""DiscountCode repository for data access."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.discount_code import DiscountCode
from app.schemas.discount_code import DiscountCodeCreate, DiscountCodeUpdate, normalize_code


def _json_ready(values: dict[str, Any]) -> dict[str, Any]:
    if values.get("specific_customer_ids") is not None:
        values["specific_customer_ids"] = [str(v) for v in values["specific_customer_ids"]]
    return values


class DiscountCodeRepository:
    """Repository for DiscountCode model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
        order_by: str | None = None,
    ) -> list[DiscountCode]:
        """Get all discount codes with optional filters."""
        query = self.db.query(DiscountCode).filter(DiscountCode.organization_id == organization_id)
        if is_active is not None:
            query = query.filter(DiscountCode.is_active == is_active)
        query = apply_order_by(query, DiscountCode, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID, is_active: bool | None = None) -> int:
        query = self.db.query(DiscountCode).filter(DiscountCode.organization_id == organization_id)
        if is_active is not None:
            query = query.filter(DiscountCode.is_active == is_active)
        return query.count()

    def get_by_id(self, code_id: UUID, organization_id: UUID | None = None) -> DiscountCode | None:
        query = self.db.query(DiscountCode).filter(DiscountCode.id == code_id)
        if organization_id is not None:
            query = query.filter(DiscountCode.organization_id == organization_id)
        return query.first()

    def get_by_code(self, code: str, organization_id: UUID) -> DiscountCode | None:
        """Get a discount code by code, case-insensitively."""
        return (
            self.db.query(DiscountCode)
            .filter(
                DiscountCode.organization_id == organization_id,
                DiscountCode.code == normalize_code(code),
            )
            .first()
        )

    def get_valid_as_of(self, organization_id: UUID, as_of: datetime) -> list[DiscountCode]:
        """Active codes whose validity window contains ``as_of``."""
        return (
            self.db.query(DiscountCode)
            .filter(
                DiscountCode.organization_id == organization_id,
                DiscountCode.is_active.is_(True),
                DiscountCode.starts_at <= as_of,
                or_(DiscountCode.expires_at.is_(None), DiscountCode.expires_at > as_of),
            )
            .all()
        )

    def get_expired_codes(self, organization_id: UUID, as_of: datetime) -> list[str]:
        rows = (
            self.db.query(DiscountCode.code)
            .filter(
                DiscountCode.organization_id == organization_id,
                DiscountCode.expires_at.is_not(None),
                DiscountCode.expires_at <= as_of,
            )
            .all()
        )
        return [row[0] for row in rows]

    def create(self, data: DiscountCodeCreate, organization_id: UUID) -> DiscountCode:
        """Create a new discount code."""
        return self.create_many([data], organization_id)[0]

    def create_many(
        self, items: list[DiscountCodeCreate], organization_id: UUID
    ) -> list[DiscountCode]:
        """Create several discount codes in one transaction."""
        codes = []
        for data in items:
            values = _json_ready(data.model_dump(exclude_none=True))
            values["discount_type"] = data.discount_type.value
            codes.append(DiscountCode(organization_id=organization_id, **values))
        self.db.add_all(codes)
        self.db.commit()
        for code in codes:
            self.db.refresh(code)
        return codes

    def existing_codes(self, organization_id: UUID, codes: list[str]) -> set[str]:
        if not codes:
            return set()
        rows = (
            self.db.query(DiscountCode.code)
            .filter(DiscountCode.organization_id == organization_id, DiscountCode.code.in_(codes))
            .all()
        )
        return {row[0] for row in rows}

    def update(
        self, code: str, data: DiscountCodeUpdate, organization_id: UUID
    ) -> DiscountCode | None:
        """Update a discount code by code."""
        discount_code = self.get_by_code(code, organization_id)
        if not discount_code:
            return None
        for key, value in _json_ready(data.model_dump(exclude_unset=True)).items():
            setattr(discount_code, key, value)
        self.db.commit()
        self.db.refresh(discount_code)
        return discount_code

    def deactivate(self, code: str, organization_id: UUID) -> DiscountCode | None:
        discount_code = self.get_by_code(code, organization_id)
        if not discount_code:
            return None
        discount_code.is_active = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(discount_code)
        return discount_code

    # The methods below do not commit; the usage ledger owns the transaction.

    def claim_slot(self, code_id: UUID) -> bool:
        """Atomically take one usage slot if the code is active and has capacity left."""
        updated = (
            self.db.query(DiscountCode)
            .filter(
                DiscountCode.id == code_id,
                DiscountCode.is_active.is_(True),
                or_(
                    DiscountCode.max_uses_total.is_(None),
                    DiscountCode.uses_claimed < DiscountCode.max_uses_total,
                ),
            )
            .update(
                {DiscountCode.uses_claimed: DiscountCode.uses_claimed + 1},
                synchronize_session=False,
            )
        )
        return bool(updated)

    def release_slot(self, code_id: UUID) -> None:
        self.db.query(DiscountCode).filter(
            DiscountCode.id == code_id, DiscountCode.uses_claimed > 0
        ).update(
            {DiscountCode.uses_claimed: DiscountCode.uses_claimed - 1},
            synchronize_session=False,
        )

    def record_redemption(self, code_id: UUID, discount_amount: Decimal) -> None:
        self.db.query(DiscountCode).filter(DiscountCode.id == code_id).update(
            {
                DiscountCode.times_used: DiscountCode.times_used + 1,
                DiscountCode.total_discount_given: (
                    DiscountCode.total_discount_given + discount_amount
                ),
            },
            synchronize_session=False,
        )
