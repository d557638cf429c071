"""LoyaltyTransaction repository for data access."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.loyalty_transaction import LoyaltyTransaction, LoyaltyTransactionType


class LoyaltyTransactionRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        organization_id: UUID,
        customer_loyalty_id: UUID,
        transaction_type: LoyaltyTransactionType,
        points: int,
        balance_after: int,
        order_id: UUID | None = None,
        description: str | None = None,
        created_by: str | None = None,
    ) -> LoyaltyTransaction:
        """Append a transaction. Does not commit."""
        txn = LoyaltyTransaction(
            organization_id=organization_id,
            customer_loyalty_id=customer_loyalty_id,
            transaction_type=transaction_type.value,
            points=points,
            balance_after=balance_after,
            order_id=order_id,
            description=description,
            created_by=created_by,
        )
        self.db.add(txn)
        self.db.flush()
        return txn

    def get_by_customer_loyalty(
        self, customer_loyalty_id: UUID, skip: int = 0, limit: int = 100
    ) -> list[LoyaltyTransaction]:
        return (
            self.db.query(LoyaltyTransaction)
            .filter(LoyaltyTransaction.customer_loyalty_id == customer_loyalty_id)
            .order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.balance_after.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self, customer_loyalty_id: UUID) -> int:
        return (
            self.db.query(LoyaltyTransaction)
            .filter(LoyaltyTransaction.customer_loyalty_id == customer_loyalty_id)
            .count()
        )

    def sum_points(self, customer_loyalty_id: UUID) -> int:
        """Running sum of all deltas; equals the account's current balance."""
        total = (
            self.db.query(func.coalesce(func.sum(LoyaltyTransaction.points), 0))
            .filter(LoyaltyTransaction.customer_loyalty_id == customer_loyalty_id)
            .scalar()
        )
        return int(total or 0)
