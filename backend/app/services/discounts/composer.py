"""Combines candidate discounts under the organization's stacking policy."""

import logging
from collections.abc import Iterator
from dataclasses import replace
from decimal import Decimal

from app.models.shared import round_money
from app.services.discounts.definitions import StackingPolicy
from app.services.discounts.errors import DiscountErrorCode
from app.services.discounts.types import (
    HUNDRED,
    ZERO,
    CandidateSet,
    ComposedDiscount,
    DiscountCandidate,
    RejectedCandidate,
)

logger = logging.getLogger(__name__)


class DiscountComposer:
    """Builds the final discount for an order.

    A valid promo code is always included and becomes the primary source;
    otherwise the first remaining candidate (automatic rules, loyalty, volume,
    seasonal, in that order) is primary. Further candidates are added only when
    they and the primary are stackable, the policy allows combining them with a
    promo code, and the combined percentage stays within
    ``policy.max_combined_percent``. A manual discount is always included.

    Each amount is computed against the original order amount and the total is
    the plain sum, capped at the order amount (and at ``approved_cap`` when a
    reviewer approved a smaller discount).
    """

    def compose(
        self,
        candidates: CandidateSet,
        policy: StackingPolicy,
        order_amount: Decimal,
        approved_cap: Decimal | None = None,
    ) -> ComposedDiscount:
        selected: list[DiscountCandidate] = []
        rejected: list[RejectedCandidate] = []

        promo = candidates.promo
        manual = candidates.manual
        primary = promo
        if promo is not None:
            selected.append(promo)
        cumulative = sum(
            (c.percent_of(order_amount) for c in (promo, manual) if c is not None), ZERO
        )

        others = (
            *candidates.automatic,
            candidates.loyalty,
            candidates.volume,
            candidates.seasonal,
        )
        for candidate in others:
            if candidate is None or candidate.discount_amount <= 0:
                continue
            percent = candidate.percent_of(order_amount)
            if primary is None:
                primary = candidate
                selected.append(candidate)
                cumulative += percent
                continue

            reason = self._stacking_conflict(candidate, primary, promo, policy)
            if reason is None and cumulative + percent > policy.max_combined_percent:
                reason = (
                    f"Combined discount would exceed {policy.max_combined_percent}% of the order"
                )
            if reason is not None:
                logger.info(
                    "Skipping %s discount %s: %s",
                    candidate.source_type.value,
                    candidate.source_id,
                    reason,
                )
                rejected.append(
                    RejectedCandidate(
                        candidate=candidate,
                        reason=DiscountErrorCode.STACKING_POLICY_VIOLATION,
                        message=reason,
                    )
                )
                continue
            selected.append(candidate)
            cumulative += percent

        if manual is not None:
            selected.append(manual)

        raw_total = sum((c.discount_amount for c in selected), ZERO)
        total = min(raw_total, order_amount)
        if approved_cap is not None:
            total = min(total, max(approved_cap, ZERO))
        total = round_money(max(total, ZERO))

        return ComposedDiscount(
            order_amount=order_amount,
            sources=tuple(self._allocate(selected, total)),
            rejected=tuple(rejected),
            total_discount_amount=total,
            total_discount_percent=(
                round_money(total * HUNDRED / order_amount) if order_amount > 0 else ZERO
            ),
        )

    @staticmethod
    def _stacking_conflict(
        candidate: DiscountCandidate,
        primary: DiscountCandidate,
        promo: DiscountCandidate | None,
        policy: StackingPolicy,
    ) -> str | None:
        if not candidate.stackable:
            return "Discount is not stackable"
        if primary is not promo and not primary.stackable:
            return f"{primary.source_name} cannot be combined with other discounts"
        if promo is not None and not policy.allow_code_rule_stacking:
            return "Promo codes cannot be combined with other discounts"
        if promo is not None and not candidate.stack_with_codes:
            return "Discount cannot be combined with promo codes"
        return None

    @staticmethod
    def _allocate(
        selected: list[DiscountCandidate], total: Decimal
    ) -> Iterator[DiscountCandidate]:
        """Spread ``total`` over the sources in composition order."""
        remaining = total
        for candidate in selected:
            amount = min(candidate.discount_amount, remaining)
            if amount <= 0:
                continue
            remaining -= amount
            if amount == candidate.discount_amount:
                yield candidate
            else:
                yield replace(candidate, discount_amount=amount)
