"""AppliedDiscount repository for data access."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.applied_discount import AppliedDiscount


class AppliedDiscountRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **values: Any) -> AppliedDiscount:
        """Add an applied discount row. Does not commit."""
        row = AppliedDiscount(**values)
        self.db.add(row)
        self.db.flush()
        return row

    def get_by_order(self, organization_id: UUID, order_id: UUID) -> list[AppliedDiscount]:
        return (
            self.db.query(AppliedDiscount)
            .filter(
                AppliedDiscount.organization_id == organization_id,
                AppliedDiscount.order_id == order_id,
            )
            .order_by(AppliedDiscount.order_position.asc())
            .all()
        )

    def exists_for_order(self, organization_id: UUID, order_id: UUID) -> bool:
        return (
            self.db.query(AppliedDiscount.id)
            .filter(
                AppliedDiscount.organization_id == organization_id,
                AppliedDiscount.order_id == order_id,
            )
            .first()
            is not None
        )
