"""CustomerLoyalty repository for data access."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.customer_loyalty import CustomerLoyalty


class CustomerLoyaltyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> list[CustomerLoyalty]:
        query = self.db.query(CustomerLoyalty).filter(
            CustomerLoyalty.organization_id == organization_id
        )
        query = apply_order_by(query, CustomerLoyalty, order_by, default_field="enrolled_at")
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID) -> int:
        return (
            self.db.query(CustomerLoyalty)
            .filter(CustomerLoyalty.organization_id == organization_id)
            .count()
        )

    def get_by_customer(self, organization_id: UUID, customer_id: UUID) -> CustomerLoyalty | None:
        return (
            self.db.query(CustomerLoyalty)
            .filter(
                CustomerLoyalty.organization_id == organization_id,
                CustomerLoyalty.customer_id == customer_id,
            )
            .first()
        )

    def get_by_id(self, loyalty_id: UUID) -> CustomerLoyalty | None:
        return self.db.query(CustomerLoyalty).filter(CustomerLoyalty.id == loyalty_id).first()

    def get_by_referral_code(
        self, organization_id: UUID, referral_code: str
    ) -> CustomerLoyalty | None:
        return (
            self.db.query(CustomerLoyalty)
            .filter(
                CustomerLoyalty.organization_id == organization_id,
                CustomerLoyalty.referral_code == referral_code.strip().upper(),
            )
            .first()
        )

    def referral_code_exists(self, referral_code: str) -> bool:
        return (
            self.db.query(CustomerLoyalty.id)
            .filter(CustomerLoyalty.referral_code == referral_code)
            .first()
            is not None
        )

    def create(
        self,
        organization_id: UUID,
        customer_id: UUID,
        referral_code: str,
        referred_by_code: str | None = None,
    ) -> CustomerLoyalty:
        loyalty = CustomerLoyalty(
            organization_id=organization_id,
            customer_id=customer_id,
            referral_code=referral_code,
            referred_by_code=referred_by_code,
        )
        self.db.add(loyalty)
        self.db.commit()
        self.db.refresh(loyalty)
        return loyalty

    # The methods below do not commit; the usage ledger owns the transaction.

    def apply_points(self, loyalty_id: UUID, delta: int) -> bool:
        """Atomically add ``delta`` points unless the balance would go negative."""
        updated = (
            self.db.query(CustomerLoyalty)
            .filter(
                CustomerLoyalty.id == loyalty_id,
                CustomerLoyalty.current_points + delta >= 0,
            )
            .update(
                {
                    CustomerLoyalty.current_points: CustomerLoyalty.current_points + delta,
                    CustomerLoyalty.total_points_earned: CustomerLoyalty.total_points_earned
                    + (delta if delta > 0 else 0),
                    CustomerLoyalty.total_points_redeemed: CustomerLoyalty.total_points_redeemed
                    + (-delta if delta < 0 else 0),
                },
                synchronize_session=False,
            )
        )
        return bool(updated)

    def current_points(self, loyalty_id: UUID) -> int:
        value = (
            self.db.query(CustomerLoyalty.current_points)
            .filter(CustomerLoyalty.id == loyalty_id)
            .scalar()
        )
        return int(value or 0)

    def record_order(self, loyalty_id: UUID, order_amount: Decimal, ordered_at: datetime) -> None:
        self.db.query(CustomerLoyalty).filter(CustomerLoyalty.id == loyalty_id).update(
            {
                CustomerLoyalty.total_orders: CustomerLoyalty.total_orders + 1,
                CustomerLoyalty.total_spent: CustomerLoyalty.total_spent + order_amount,
                CustomerLoyalty.first_order_at: case(
                    (CustomerLoyalty.first_order_at.is_(None), ordered_at),
                    else_=CustomerLoyalty.first_order_at,
                ),
                CustomerLoyalty.last_order_at: ordered_at,
            },
            synchronize_session=False,
        )

    def increment_referrals(self, loyalty_id: UUID) -> None:
        self.db.query(CustomerLoyalty).filter(CustomerLoyalty.id == loyalty_id).update(
            {CustomerLoyalty.referrals_count: CustomerLoyalty.referrals_count + 1},
            synchronize_session=False,
        )
