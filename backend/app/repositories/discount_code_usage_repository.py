"""Repository for the promo code usage ledger."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.discount_code_customer_claim import DiscountCodeCustomerClaim
from app.models.discount_code_usage import (
    CLAIMING_USAGE_STATUSES,
    DiscountCodeUsage,
    UsageStatus,
)


class DiscountCodeUsageRepository:
    """Ledger rows are added and moved between statuses; they are never deleted.

    Write methods do not commit: the usage ledger service groups them with the
    matching counter update into one transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, **values: Any) -> DiscountCodeUsage:
        usage = DiscountCodeUsage(**values)
        self.db.add(usage)
        self.db.flush()
        return usage

    def get_by_id(self, usage_id: UUID) -> DiscountCodeUsage | None:
        return self.db.query(DiscountCodeUsage).filter(DiscountCodeUsage.id == usage_id).first()

    def count_claims(self, discount_code_id: UUID) -> int:
        """Reserved plus committed usages of a code."""
        return (
            self.db.query(DiscountCodeUsage)
            .filter(
                DiscountCodeUsage.discount_code_id == discount_code_id,
                DiscountCodeUsage.status.in_(CLAIMING_USAGE_STATUSES),
            )
            .count()
        )

    def count_customer_claims(
        self,
        discount_code_id: UUID,
        customer_id: UUID | None,
        customer_email: str | None,
    ) -> int:
        """Claims on a code by one customer, matched by id or by e-mail."""
        matchers = []
        if customer_id is not None:
            matchers.append(DiscountCodeUsage.customer_id == customer_id)
        if customer_email:
            matchers.append(DiscountCodeUsage.customer_email == customer_email.lower())
        if not matchers:
            return 0
        return (
            self.db.query(DiscountCodeUsage)
            .filter(
                DiscountCodeUsage.discount_code_id == discount_code_id,
                DiscountCodeUsage.status.in_(CLAIMING_USAGE_STATUSES),
                or_(*matchers),
            )
            .count()
        )

    def count_by_status(self, discount_code_id: UUID, status: UsageStatus) -> int:
        return (
            self.db.query(DiscountCodeUsage)
            .filter(
                DiscountCodeUsage.discount_code_id == discount_code_id,
                DiscountCodeUsage.status == status.value,
            )
            .count()
        )

    def transition(
        self,
        usage_id: UUID,
        from_status: UsageStatus,
        to_status: UsageStatus,
        **values: Any,
    ) -> bool:
        """Compare-and-set the status of a ledger row."""
        updates: dict[Any, Any] = {DiscountCodeUsage.status: to_status.value}
        for key, value in values.items():
            updates[getattr(DiscountCodeUsage, key)] = value
        updated = (
            self.db.query(DiscountCodeUsage)
            .filter(
                DiscountCodeUsage.id == usage_id,
                DiscountCodeUsage.status == from_status.value,
            )
            .update(updates, synchronize_session=False)
        )
        return bool(updated)

    def get_expired_reservations(self, now: datetime, limit: int = 500) -> list[DiscountCodeUsage]:
        return (
            self.db.query(DiscountCodeUsage)
            .filter(
                DiscountCodeUsage.status == UsageStatus.RESERVED.value,
                DiscountCodeUsage.expires_at.is_not(None),
                DiscountCodeUsage.expires_at <= now,
            )
            .order_by(DiscountCodeUsage.expires_at.asc())
            .limit(limit)
            .all()
        )

    def get_by_code(
        self, discount_code_id: UUID, skip: int = 0, limit: int = 100
    ) -> list[DiscountCodeUsage]:
        return (
            self.db.query(DiscountCodeUsage)
            .filter(DiscountCodeUsage.discount_code_id == discount_code_id)
            .order_by(DiscountCodeUsage.reserved_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    # Per-customer counters

    def get_customer_counter(
        self, discount_code_id: UUID, customer_key: str
    ) -> DiscountCodeCustomerClaim | None:
        return (
            self.db.query(DiscountCodeCustomerClaim)
            .filter(
                DiscountCodeCustomerClaim.discount_code_id == discount_code_id,
                DiscountCodeCustomerClaim.customer_key == customer_key,
            )
            .first()
        )

    def add_customer_counter(
        self, organization_id: UUID, discount_code_id: UUID, customer_key: str, claims: int
    ) -> DiscountCodeCustomerClaim:
        counter = DiscountCodeCustomerClaim(
            organization_id=organization_id,
            discount_code_id=discount_code_id,
            customer_key=customer_key,
            claims=claims,
        )
        self.db.add(counter)
        self.db.flush()
        return counter

    def claim_customer_slot(self, discount_code_id: UUID, customer_key: str, limit: int) -> bool:
        """Take one claim on a customer counter if it is still under ``limit``."""
        updated = (
            self.db.query(DiscountCodeCustomerClaim)
            .filter(
                DiscountCodeCustomerClaim.discount_code_id == discount_code_id,
                DiscountCodeCustomerClaim.customer_key == customer_key,
                DiscountCodeCustomerClaim.claims < limit,
            )
            .update(
                {DiscountCodeCustomerClaim.claims: DiscountCodeCustomerClaim.claims + 1},
                synchronize_session=False,
            )
        )
        return bool(updated)

    def release_customer_slot(self, discount_code_id: UUID, customer_key: str) -> None:
        self.db.query(DiscountCodeCustomerClaim).filter(
            DiscountCodeCustomerClaim.discount_code_id == discount_code_id,
            DiscountCodeCustomerClaim.customer_key == customer_key,
            DiscountCodeCustomerClaim.claims > 0,
        ).update(
            {DiscountCodeCustomerClaim.claims: DiscountCodeCustomerClaim.claims - 1},
            synchronize_session=False,
        )
