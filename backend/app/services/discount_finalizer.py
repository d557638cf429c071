"""Writes the applied discounts of an order and settles the promo code reservation."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.applied_discount import AppliedDiscount, DiscountSourceType
from app.repositories.applied_discount_repository import AppliedDiscountRepository
from app.repositories.automatic_rule_repository import AutomaticRuleRepository
from app.repositories.seasonal_campaign_repository import SeasonalCampaignRepository
from app.services.discounts.errors import OrderAlreadyFinalized
from app.services.discounts.types import ComposedDiscount
from app.services.usage_ledger import UsageLedger

logger = logging.getLogger(__name__)

_RULE_SOURCES = (DiscountSourceType.AUTOMATIC_RULE, DiscountSourceType.REFERRAL)


class DiscountFinalizer:
    def __init__(self, db: Session):
        self.db = db
        self.applied_repo = AppliedDiscountRepository(db)
        self.rule_repo = AutomaticRuleRepository(db)
        self.campaign_repo = SeasonalCampaignRepository(db)
        self.ledger = UsageLedger(db)

    def ensure_not_finalized(self, organization_id: UUID, order_id: UUID) -> None:
        if self.applied_repo.exists_for_order(organization_id, order_id):
            raise OrderAlreadyFinalized(order_id)

    def finalize(
        self,
        organization_id: UUID,
        order_id: UUID,
        composed: ComposedDiscount,
        customer_id: UUID | None = None,
        reservation_id: UUID | None = None,
        applied_by: str | None = None,
        approval_request_id: UUID | None = None,
    ) -> list[AppliedDiscount]:
        """Persist one row per source and commit the promo code usage in one transaction.

        A reservation whose code did not make it into the final sources is
        released instead.

        Raises:
            OrderAlreadyFinalized: If the order already has applied discounts.
        """
        self.ensure_not_finalized(organization_id, order_id)

        rows: list[AppliedDiscount] = []
        for position, source in enumerate(composed.sources, start=1):
            rows.append(
                self.applied_repo.create(
                    organization_id=organization_id,
                    order_id=order_id,
                    customer_id=customer_id,
                    source_type=source.source_type.value,
                    source_id=UUID(source.source_id) if source.source_id else None,
                    source_name=source.source_name,
                    discount_type=source.discount_type.value,
                    discount_value=source.discount_value,
                    discount_amount=source.discount_amount,
                    order_position=position,
                    applied_to_subtotal=composed.order_amount,
                    approval_request_id=approval_request_id,
                    applied_by=applied_by,
                )
            )
            if source.source_id is None:
                continue
            if source.source_type in _RULE_SOURCES:
                self.rule_repo.record_application(UUID(source.source_id), source.discount_amount)
            elif source.source_type == DiscountSourceType.SEASONAL:
                self.campaign_repo.record_application(
                    UUID(source.source_id), source.discount_amount
                )

        promo = composed.promo_source
        if reservation_id is not None and promo is not None:
            self.ledger.commit_usage(reservation_id, promo.discount_amount, commit=False)
        self.db.commit()
        if reservation_id is not None and promo is None:
            self.ledger.release_usage(reservation_id, reason="not_applied")

        for row in rows:
            self.db.refresh(row)
        logger.info(
            "Applied %d discount(s) totalling %s to order %s",
            len(rows),
            composed.total_discount_amount,
            order_id,
        )
        return rows

    def get_applied(self, organization_id: UUID, order_id: UUID) -> list[AppliedDiscount]:
        return self.applied_repo.get_by_order(organization_id, order_id)
