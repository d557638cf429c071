"""Discount evaluation: builds the order context, runs every resolver and composes the result."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.applied_discount import AppliedDiscount, DiscountSourceType
from app.models.approval_request import DiscountApprovalRequest
from app.models.customer_loyalty import CustomerLoyalty
from app.models.shared import utc_now
from app.repositories.approval_request_repository import ApprovalRequestRepository
from app.repositories.customer_loyalty_repository import CustomerLoyaltyRepository
from app.schemas.discount import DiscountEvaluationRequest, ManualDiscountInput
from app.services.approval_workflow import ApprovalWorkflow, approval_reason
from app.services.discount_finalizer import DiscountFinalizer
from app.services.discounts.catalog import DiscountCatalog
from app.services.discounts.composer import DiscountComposer
from app.services.discounts.definitions import Catalog
from app.services.discounts.errors import ApprovalAlreadyPending, DiscountError
from app.services.discounts.loyalty import LoyaltyCalculator
from app.services.discounts.promo_code import PromoCodeValidator, ValidationResult
from app.services.discounts.rules import AutomaticRuleEngine
from app.services.discounts.seasonal import SeasonalCampaignResolver
from app.services.discounts.types import (
    CandidateSet,
    ComposedDiscount,
    DiscountCandidate,
    NextTierHint,
    OrderContext,
    ServiceLine,
    compute_discount_amount,
)
from app.services.discounts.volume import VolumeTierResolver
from app.services.usage_ledger import Denied, UsageLedger

logger = logging.getLogger(__name__)


@dataclass
class EvaluationOutcome:
    """What happened to one evaluation request."""

    order_id: UUID
    composed: ComposedDiscount
    approval_reason: str | None = None
    approval_request: DiscountApprovalRequest | None = None
    reservation_id: UUID | None = None
    applied: list[AppliedDiscount] = field(default_factory=list)
    promo_result: ValidationResult | None = None
    next_volume_tier: NextTierHint | None = None

    @property
    def requires_approval(self) -> bool:
        return self.approval_reason is not None


def manual_candidate(manual: ManualDiscountInput, context: OrderContext) -> DiscountCandidate:
    return DiscountCandidate(
        source_type=DiscountSourceType.MANUAL,
        source_id=None,
        source_name="Manual discount",
        discount_type=manual.discount_type,
        discount_value=manual.discount_value,
        discount_amount=compute_discount_amount(
            manual.discount_type, manual.discount_value, context.order_amount
        ),
        stackable=True,
    )


class DiscountService:
    def __init__(self, db: Session):
        self.db = db
        self.catalog = DiscountCatalog(db)
        self.ledger = UsageLedger(db)
        self.validator = PromoCodeValidator(self.ledger)
        self.rule_engine = AutomaticRuleEngine()
        self.loyalty = LoyaltyCalculator()
        self.volume = VolumeTierResolver()
        self.seasonal = SeasonalCampaignResolver()
        self.composer = DiscountComposer()
        self.workflow = ApprovalWorkflow(db)
        self.finalizer = DiscountFinalizer(db)
        self.loyalty_repo = CustomerLoyaltyRepository(db)
        self.approval_repo = ApprovalRequestRepository(db)

    def build_context(
        self, organization_id: UUID, data: DiscountEvaluationRequest, as_of: datetime
    ) -> OrderContext:
        """Order context, filling customer history from the loyalty account when not given."""
        member: CustomerLoyalty | None = None
        if data.customer_id is not None:
            member = self.loyalty_repo.get_by_customer(organization_id, data.customer_id)

        total_orders = data.customer_total_orders
        if total_orders is None:
            total_orders = int(member.total_orders or 0) if member is not None else 0
        is_new = data.is_new_customer
        if is_new is None:
            is_new = total_orders == 0

        referral_code = None
        if data.referral_code:
            referrer = self.loyalty_repo.get_by_referral_code(organization_id, data.referral_code)
            if referrer is None or (
                data.customer_id is not None and referrer.customer_id == data.customer_id
            ):
                logger.info("Ignoring referral code %s on order %s", data.referral_code, data.order_id)
            else:
                referral_code = str(referrer.referral_code)

        return OrderContext(
            order_amount=data.order_amount,
            as_of=as_of,
            customer_id=str(data.customer_id) if data.customer_id is not None else None,
            customer_email=str(data.customer_email).lower() if data.customer_email else None,
            services=tuple(
                ServiceLine(service_type=line.service_type, quantity=line.quantity, unit=line.unit)
                for line in data.services
            ),
            tier=data.tier,
            is_new_customer=is_new,
            customer_total_orders=total_orders,
            referral_code=referral_code,
            promo_code=data.promo_code,
            loyalty_points=int(member.current_points or 0) if member is not None else None,
        )

    def collect_candidates(
        self,
        catalog: Catalog,
        context: OrderContext,
        manual: ManualDiscountInput | None = None,
    ) -> tuple[CandidateSet, ValidationResult | None, NextTierHint | None]:
        """Run every resolver against the same snapshot and context."""
        promo_result = None
        if context.promo_code:
            promo_result = self.validator.validate(catalog, context.promo_code, context)

        volume_match = self.volume.resolve(catalog, context)
        seasonal_match = self.seasonal.resolve(catalog, context)
        candidates = CandidateSet(
            promo=promo_result.to_candidate() if promo_result is not None else None,
            automatic=tuple(
                match.to_candidate() for match in self.rule_engine.evaluate(catalog, context)
            ),
            loyalty=self.loyalty.candidate(catalog.loyalty_program, context),
            volume=volume_match.candidate if volume_match is not None else None,
            seasonal=seasonal_match.candidate if seasonal_match is not None else None,
            manual=manual_candidate(manual, context) if manual is not None else None,
        )
        next_tier = volume_match.next_tier if volume_match is not None else None
        return candidates, promo_result, next_tier

    def evaluate(
        self,
        organization_id: UUID,
        data: DiscountEvaluationRequest,
        as_of: datetime | None = None,
    ) -> EvaluationOutcome:
        """Evaluate, and unless ``data.apply`` is false, act on the discounts for an order.

        Within the requester's limit the discounts are applied right away;
        above it the promo code reservation is held and an approval request is
        opened. A preview never touches the usage ledger.

        Raises:
            OrganizationNotFound: If the organization does not exist.
            OrderAlreadyFinalized: If the order already has applied discounts.
            ApprovalAlreadyPending: If the order already awaits a decision.
        """
        as_of = as_of or utc_now()
        catalog = self.catalog.load_catalog(organization_id, as_of)
        if data.apply:
            self.finalizer.ensure_not_finalized(organization_id, data.order_id)
            if self.approval_repo.get_open_for_order(organization_id, data.order_id) is not None:
                raise ApprovalAlreadyPending(data.order_id)

        context = self.build_context(organization_id, data, as_of)
        candidates, promo_result, next_tier = self.collect_candidates(
            catalog, context, data.manual_discount
        )
        composed = self.composer.compose(
            candidates, catalog.stacking_policy, context.order_amount
        )
        reason = approval_reason(composed, catalog.approval_policy, data.requester_role)
        outcome = EvaluationOutcome(
            order_id=data.order_id,
            composed=composed,
            approval_reason=reason,
            promo_result=promo_result,
            next_volume_tier=next_tier,
        )
        if not data.apply:
            return outcome

        promo = composed.promo_source
        if promo is not None and promo.source_id is not None:
            reserved = self.ledger.reserve_usage(
                UUID(promo.source_id),
                data.order_id,
                customer_id=data.customer_id,
                customer_email=context.customer_email,
                order_amount=context.order_amount,
                discount_amount=promo.discount_amount,
                hold_for_approval=reason is not None,
                organization_id=organization_id,
            )
            if isinstance(reserved, Denied):
                logger.warning(
                    "Promo code %s denied for order %s: %s",
                    promo.source_name,
                    data.order_id,
                    reserved.error_code.value,
                )
                candidates = replace(candidates, promo=None)
                composed = self.composer.compose(
                    candidates, catalog.stacking_policy, context.order_amount
                )
                outcome.composed = composed
                outcome.approval_reason = approval_reason(
                    composed, catalog.approval_policy, data.requester_role
                )
                outcome.promo_result = ValidationResult.failure(
                    promo.source_name, reserved.error_code, reserved.message
                )
            else:
                outcome.reservation_id = reserved.id

        try:
            if outcome.approval_reason is not None:
                outcome.approval_request = self.workflow.open_request(
                    organization_id,
                    data.order_id,
                    composed,
                    candidates,
                    catalog.stacking_policy,
                    catalog.approval_policy,
                    requested_by=data.requested_by,
                    requester_role=data.requester_role,
                    customer_id=data.customer_id,
                    reason=data.reason,
                    reservation_id=outcome.reservation_id,
                )
            elif composed.sources:
                outcome.applied = self.finalizer.finalize(
                    organization_id,
                    data.order_id,
                    composed,
                    customer_id=data.customer_id,
                    reservation_id=outcome.reservation_id,
                    applied_by=data.requested_by,
                )
        except DiscountError:
            if outcome.reservation_id is not None:
                self.ledger.release_usage(outcome.reservation_id, reason="evaluation_failed")
            raise
        return outcome

    def applied_discounts(self, organization_id: UUID, order_id: UUID) -> list[AppliedDiscount]:
        return self.finalizer.get_applied(organization_id, order_id)
