"""Usage ledger: promo code reservations and loyalty point postings.

Every counter change happens through a single conditional UPDATE whose affected
row count tells whether it succeeded, so two sessions can never both take the
last slot of a code (in total or for one customer) or overdraw a points balance.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.customer_loyalty import CustomerLoyalty
from app.models.discount_code_usage import DiscountCodeUsage, UsageStatus
from app.models.loyalty_transaction import LoyaltyTransaction, LoyaltyTransactionType
from app.models.shared import DEFAULT_ORGANIZATION_ID, ensure_aware, to_decimal, utc_now
from app.repositories.customer_loyalty_repository import CustomerLoyaltyRepository
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.repositories.discount_code_usage_repository import DiscountCodeUsageRepository
from app.repositories.loyalty_transaction_repository import LoyaltyTransactionRepository
from app.services.discounts.errors import DiscountErrorCode, LoyaltyError

logger = logging.getLogger(__name__)

# One internal retry when a slot looked free but the conditional update lost a race
_RESERVE_ATTEMPTS = 2

# (counter key, (customer_id, customer_email) ledger matcher)
CustomerKeys = list[tuple[str, tuple[UUID | None, str | None]]]


def customer_keys(customer_id: UUID | None, customer_email: str | None) -> CustomerKeys:
    """Counter keys of a customer, each with the ledger matcher it counts."""
    keys: CustomerKeys = []
    if customer_id is not None:
        keys.append((f"id:{customer_id}", (customer_id, None)))
    if customer_email:
        email = customer_email.lower()
        keys.append((f"email:{email}", (None, email)))
    return keys


@dataclass(frozen=True)
class Reservation:
    id: UUID
    discount_code_id: UUID
    order_id: UUID
    expires_at: datetime | None


@dataclass(frozen=True)
class Denied:
    discount_code_id: UUID
    error_code: DiscountErrorCode
    message: str


class UsageLedger:
    def __init__(self, db: Session):
        self.db = db
        self.code_repo = DiscountCodeRepository(db)
        self.usage_repo = DiscountCodeUsageRepository(db)
        self.loyalty_repo = CustomerLoyaltyRepository(db)
        self.txn_repo = LoyaltyTransactionRepository(db)

    # Read side, used by the promo code validator

    def uses_claimed(self, discount_code_id: UUID) -> int:
        return self.usage_repo.count_claims(discount_code_id)

    def customer_claims(
        self,
        discount_code_id: UUID,
        customer_id: str | None,
        customer_email: str | None,
    ) -> int:
        return self.usage_repo.count_customer_claims(
            discount_code_id,
            UUID(customer_id) if customer_id else None,
            customer_email,
        )

    # Promo code reservations

    def _ensure_customer_counters(
        self, organization_id: UUID, discount_code_id: UUID, keys: CustomerKeys
    ) -> None:
        """Create missing per-customer counters, seeded from the existing ledger rows."""
        for key, (customer_id, customer_email) in keys:
            if self.usage_repo.get_customer_counter(discount_code_id, key) is not None:
                continue
            claims = self.usage_repo.count_customer_claims(
                discount_code_id, customer_id, customer_email
            )
            try:
                self.usage_repo.add_customer_counter(
                    organization_id, discount_code_id, key, claims
                )
                self.db.commit()
            except IntegrityError:
                # Created concurrently by another reservation
                self.db.rollback()

    def reserve_usage(
        self,
        discount_code_id: UUID,
        order_id: UUID,
        customer_id: UUID | None = None,
        customer_email: str | None = None,
        order_amount: Decimal = Decimal("0"),
        discount_amount: Decimal = Decimal("0"),
        hold_until: datetime | None = None,
        organization_id: UUID = DEFAULT_ORGANIZATION_ID,
        hold_for_approval: bool = False,
    ) -> Reservation | Denied:
        """Claim one usage slot of a code for an order.

        The slot is held until ``hold_until`` (default: the configured
        reservation TTL) and released by the expiry sweep if not committed.
        A slot held for an approval has no expiry: only the decision on the
        approval request commits or releases it.

        The total slot and every per-customer claim are taken with conditional
        updates in one transaction; if any of them is refused, all are rolled back.
        """
        customer_email = customer_email.lower() if customer_email else None
        code = self.code_repo.get_by_id(discount_code_id)
        per_customer = code.max_uses_per_customer if code is not None else None
        keys = customer_keys(customer_id, customer_email) if per_customer is not None else []
        if code is not None and keys:
            self._ensure_customer_counters(
                code.organization_id, discount_code_id, keys  # type: ignore[arg-type]
            )

        for attempt in range(_RESERVE_ATTEMPTS):
            if self.code_repo.claim_slot(discount_code_id):
                break
            self.db.rollback()
            code = self.code_repo.get_by_id(discount_code_id)
            if code is None or not code.is_active:
                return Denied(
                    discount_code_id, DiscountErrorCode.CODE_NOT_FOUND, "Invalid discount code"
                )
            if code.max_uses_total is not None and code.uses_claimed >= code.max_uses_total:
                logger.warning("Discount code %s has no usage left", discount_code_id)
                return Denied(
                    discount_code_id,
                    DiscountErrorCode.USAGE_LIMIT_EXCEEDED,
                    "This code has reached its usage limit",
                )
            logger.info(
                "Reservation of discount code %s lost a race (attempt %d)",
                discount_code_id,
                attempt + 1,
            )
        else:
            return Denied(
                discount_code_id,
                DiscountErrorCode.CONCURRENT_USAGE_CONFLICT,
                "The code is being redeemed concurrently, please retry",
            )

        for key, _ in keys:
            if not self.usage_repo.claim_customer_slot(
                discount_code_id, key, per_customer  # type: ignore[arg-type]
            ):
                self.db.rollback()
                logger.warning(
                    "Customer limit reached on discount code %s for %s", discount_code_id, key
                )
                return Denied(
                    discount_code_id,
                    DiscountErrorCode.CUSTOMER_LIMIT_EXCEEDED,
                    "You have already used this code",
                )

        now = utc_now()
        expires_at: datetime | None = None
        if not hold_for_approval:
            expires_at = hold_until or now + timedelta(
                minutes=settings.DISCOUNT_RESERVATION_TTL_MINUTES
            )
        usage = self.usage_repo.create(
            organization_id=organization_id,
            discount_code_id=discount_code_id,
            order_id=order_id,
            customer_id=customer_id,
            customer_email=customer_email,
            status=UsageStatus.RESERVED.value,
            order_amount=order_amount,
            discount_amount=discount_amount,
            reserved_at=now,
            expires_at=expires_at,
        )
        self.db.commit()
        return Reservation(
            id=usage.id,  # type: ignore[arg-type]
            discount_code_id=discount_code_id,
            order_id=order_id,
            expires_at=expires_at,
        )

    def commit_usage(
        self, reservation_id: UUID, discount_amount: Decimal | None = None, commit: bool = True
    ) -> DiscountCodeUsage:
        """Turn an outstanding reservation into a redemption.

        Raises:
            ValueError: If the reservation is missing or no longer outstanding.
        """
        usage = self.usage_repo.get_by_id(reservation_id)
        if usage is None:
            raise ValueError(f"Reservation {reservation_id} not found")
        amount = discount_amount if discount_amount is not None else to_decimal(
            usage.discount_amount
        )
        values = {"committed_at": utc_now(), "discount_amount": amount}
        if not self.usage_repo.transition(
            reservation_id, UsageStatus.RESERVED, UsageStatus.COMMITTED, **values
        ):
            self.db.rollback()
            raise ValueError(f"Reservation {reservation_id} is no longer outstanding")
        self.code_repo.record_redemption(usage.discount_code_id, amount)  # type: ignore[arg-type]
        if commit:
            self.db.commit()
        self.db.refresh(usage)
        return usage

    def release_usage(self, reservation_id: UUID, reason: str = "released") -> bool:
        """Give the slot of an outstanding reservation back. Returns False if already settled."""
        usage = self.usage_repo.get_by_id(reservation_id)
        if usage is None:
            return False
        released = self.usage_repo.transition(
            reservation_id,
            UsageStatus.RESERVED,
            UsageStatus.RELEASED,
            released_at=utc_now(),
            release_reason=reason,
        )
        if released:
            code_id: UUID = usage.discount_code_id  # type: ignore[assignment]
            self.code_repo.release_slot(code_id)
            for key, _ in customer_keys(
                usage.customer_id, usage.customer_email  # type: ignore[arg-type]
            ):
                self.usage_repo.release_customer_slot(code_id, key)
        self.db.commit()
        return released

    def release_expired(self, now: datetime | None = None) -> int:
        """Release reservations whose hold window has passed."""
        now = ensure_aware(now) if now is not None else utc_now()
        released = 0
        while batch := self.usage_repo.get_expired_reservations(now):
            for usage in batch:
                if self.release_usage(usage.id, reason="expired"):  # type: ignore[arg-type]
                    released += 1
        if released:
            logger.info("Released %d expired discount code reservations", released)
        return released

    # Loyalty points

    def post_points(
        self,
        loyalty: CustomerLoyalty,
        delta: int,
        transaction_type: LoyaltyTransactionType,
        order_id: UUID | None = None,
        description: str | None = None,
        created_by: str | None = None,
    ) -> LoyaltyTransaction:
        """Append a signed points transaction and move the balance with it.

        Raises:
            LoyaltyError: If the balance would become negative.
        """
        if delta == 0:
            raise LoyaltyError("Points delta must be non-zero")
        if not self.loyalty_repo.apply_points(loyalty.id, delta):  # type: ignore[arg-type]
            self.db.rollback()
            raise LoyaltyError("Insufficient points")
        balance = self.loyalty_repo.current_points(loyalty.id)  # type: ignore[arg-type]
        txn = self.txn_repo.create(
            organization_id=loyalty.organization_id,  # type: ignore[arg-type]
            customer_loyalty_id=loyalty.id,  # type: ignore[arg-type]
            transaction_type=transaction_type,
            points=delta,
            balance_after=balance,
            order_id=order_id,
            description=description,
            created_by=created_by,
        )
        self.db.commit()
        self.db.refresh(loyalty)
        return txn

    def ledger_balance(self, loyalty_id: UUID) -> int:
        return self.txn_repo.sum_points(loyalty_id)
