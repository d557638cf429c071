"""Loyalty service: enrollment, earning, redemption and reconciliation of points."""

import logging
import math
import secrets
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.customer_loyalty import CustomerLoyalty
from app.models.loyalty_program import LoyaltyProgram
from app.models.loyalty_transaction import LoyaltyTransaction, LoyaltyTransactionType
from app.models.shared import round_money, to_decimal, utc_now
from app.repositories.customer_loyalty_repository import CustomerLoyaltyRepository
from app.repositories.loyalty_program_repository import LoyaltyProgramRepository
from app.repositories.loyalty_transaction_repository import LoyaltyTransactionRepository
from app.schemas.loyalty import LoyaltyProgramUpsert, LoyaltyTier
from app.services.discounts.catalog import loyalty_program_definition
from app.services.discounts.errors import LoyaltyError
from app.services.discounts.loyalty import LoyaltyCalculator
from app.services.usage_ledger import UsageLedger

logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH = 8
_REFERRAL_CODE_ATTEMPTS = 10


@dataclass
class RedemptionResult:
    """Result of a points redemption."""

    points_redeemed: int
    discount_value: Decimal
    balance_after: int


@dataclass
class Reconciliation:
    customer_id: UUID
    current_points: int
    ledger_points: int
    transaction_count: int

    @property
    def is_consistent(self) -> bool:
        return self.current_points == self.ledger_points


def generate_referral_code() -> str:
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))


class LoyaltyService:
    """Service for loyalty program business logic."""

    def __init__(self, db: Session):
        self.db = db
        self.program_repo = LoyaltyProgramRepository(db)
        self.loyalty_repo = CustomerLoyaltyRepository(db)
        self.txn_repo = LoyaltyTransactionRepository(db)
        self.ledger = UsageLedger(db)

    def get_program(self, organization_id: UUID) -> LoyaltyProgram | None:
        return self.program_repo.get_by_organization(organization_id)

    def upsert_program(self, organization_id: UUID, data: LoyaltyProgramUpsert) -> LoyaltyProgram:
        return self.program_repo.upsert(organization_id, data)

    def _active_program(self, organization_id: UUID) -> LoyaltyProgram:
        program = self.program_repo.get_by_organization(organization_id)
        if program is None or not program.is_active:
            raise LoyaltyError("Loyalty program is not active")
        return program

    def _member(self, organization_id: UUID, customer_id: UUID) -> CustomerLoyalty:
        loyalty = self.loyalty_repo.get_by_customer(organization_id, customer_id)
        if loyalty is None:
            raise LoyaltyError(f"Customer {customer_id} is not enrolled in the loyalty program")
        return loyalty

    def get_member(self, organization_id: UUID, customer_id: UUID) -> CustomerLoyalty | None:
        return self.loyalty_repo.get_by_customer(organization_id, customer_id)

    def _unique_referral_code(self) -> str:
        for _ in range(_REFERRAL_CODE_ATTEMPTS):
            code = generate_referral_code()
            if not self.loyalty_repo.referral_code_exists(code):
                return code
        raise LoyaltyError("Could not allocate a unique referral code")

    def enroll(
        self,
        organization_id: UUID,
        customer_id: UUID,
        referred_by_code: str | None = None,
    ) -> CustomerLoyalty:
        """Enroll a customer, crediting the signup bonus and the referrer's bonus.

        Raises:
            LoyaltyError: If the program is inactive or the customer is already enrolled.
        """
        program = self._active_program(organization_id)
        if self.loyalty_repo.get_by_customer(organization_id, customer_id) is not None:
            raise LoyaltyError(f"Customer {customer_id} is already enrolled")

        referrer = None
        if referred_by_code:
            referred_by_code = referred_by_code.strip().upper()
            referrer = self.loyalty_repo.get_by_referral_code(organization_id, referred_by_code)
            if referrer is None:
                logger.warning("Unknown referral code %s on enrollment", referred_by_code)
                referred_by_code = None

        loyalty = self.loyalty_repo.create(
            organization_id=organization_id,
            customer_id=customer_id,
            referral_code=self._unique_referral_code(),
            referred_by_code=referred_by_code,
        )

        signup_points = int(program.points_for_signup or 0)
        if signup_points > 0:
            self.ledger.post_points(
                loyalty, signup_points, LoyaltyTransactionType.EARN_SIGNUP, description="Signup bonus"
            )

        referral_points = int(program.points_for_referral or 0)
        if referrer is not None:
            self.loyalty_repo.increment_referrals(referrer.id)  # type: ignore[arg-type]
            if referral_points > 0:
                self.ledger.post_points(
                    referrer,
                    referral_points,
                    LoyaltyTransactionType.EARN_REFERRAL,
                    description=f"Referral of customer {customer_id}",
                )
            else:
                self.db.commit()

        self.db.refresh(loyalty)
        return loyalty

    def earn(
        self,
        organization_id: UUID,
        customer_id: UUID,
        order_amount: Decimal,
        order_id: UUID | None = None,
        bonus_points: int = 0,
    ) -> CustomerLoyalty:
        """Credit points for a completed order. Unknown customers are enrolled first."""
        program = self._active_program(organization_id)
        loyalty = self.loyalty_repo.get_by_customer(organization_id, customer_id)
        if loyalty is None:
            loyalty = self.enroll(organization_id, customer_id)

        amount = to_decimal(order_amount)
        self.loyalty_repo.record_order(loyalty.id, amount, utc_now())  # type: ignore[arg-type]
        points = math.floor(amount * to_decimal(program.points_per_dollar)) + bonus_points
        if points > 0:
            self.ledger.post_points(
                loyalty,
                points,
                LoyaltyTransactionType.EARN_PURCHASE,
                order_id=order_id,
                description=f"Points earned on order of {round_money(amount)}",
            )
        else:
            self.db.commit()
            self.db.refresh(loyalty)
        return loyalty

    def redeem(
        self,
        organization_id: UUID,
        customer_id: UUID,
        points: int,
        order_id: UUID | None = None,
    ) -> RedemptionResult:
        """Convert points into a discount value.

        Raises:
            LoyaltyError: Below the program minimum or above the current balance.
        """
        program = self._active_program(organization_id)
        loyalty = self._member(organization_id, customer_id)
        minimum = int(program.min_points_to_redeem or 0)
        if points < minimum:
            raise LoyaltyError(f"Minimum {minimum} points required to redeem")
        if points > int(loyalty.current_points or 0):
            raise LoyaltyError("Insufficient points")

        txn = self.ledger.post_points(
            loyalty,
            -points,
            LoyaltyTransactionType.REDEEM,
            order_id=order_id,
            description=f"Redeemed {points} points",
        )
        value = round_money(Decimal(points) * to_decimal(program.points_to_dollar_ratio))
        return RedemptionResult(
            points_redeemed=points,
            discount_value=value,
            balance_after=int(txn.balance_after),  # type: ignore[arg-type]
        )

    def adjust(
        self,
        organization_id: UUID,
        customer_id: UUID,
        points: int,
        reason: str,
        adjusted_by: str | None = None,
    ) -> LoyaltyTransaction:
        loyalty = self._member(organization_id, customer_id)
        return self.ledger.post_points(
            loyalty,
            points,
            LoyaltyTransactionType.ADJUST,
            description=reason,
            created_by=adjusted_by,
        )

    def transactions(
        self, organization_id: UUID, customer_id: UUID, skip: int = 0, limit: int = 100
    ) -> tuple[list[LoyaltyTransaction], int]:
        loyalty = self._member(organization_id, customer_id)
        return (
            self.txn_repo.get_by_customer_loyalty(loyalty.id, skip=skip, limit=limit),  # type: ignore[arg-type]
            self.txn_repo.count(loyalty.id),  # type: ignore[arg-type]
        )

    def reconcile(self, organization_id: UUID, customer_id: UUID) -> Reconciliation:
        """Compare the stored balance with the running sum of the ledger."""
        loyalty = self._member(organization_id, customer_id)
        result = Reconciliation(
            customer_id=customer_id,
            current_points=int(loyalty.current_points or 0),
            ledger_points=self.ledger.ledger_balance(loyalty.id),  # type: ignore[arg-type]
            transaction_count=self.txn_repo.count(loyalty.id),  # type: ignore[arg-type]
        )
        if not result.is_consistent:
            logger.error(
                "Loyalty balance of customer %s drifted: stored %d, ledger %d",
                customer_id,
                result.current_points,
                result.ledger_points,
            )
        return result

    def current_tier(self, organization_id: UUID, loyalty: CustomerLoyalty) -> LoyaltyTier | None:
        program = self.program_repo.get_by_organization(organization_id)
        if program is None:
            return None
        definition = loyalty_program_definition(program)
        if not definition.tiers:
            return None
        tier = LoyaltyCalculator.resolve_tier(definition, int(loyalty.current_points or 0))
        return LoyaltyTier(
            name=tier.name,
            min_points=tier.min_points,
            discount_percent=tier.discount_percent,
            perks=list(tier.perks),
        )
