"""Loyalty tier resolution."""

from app.models.applied_discount import DiscountSourceType
from app.models.discount_code import DiscountType
from app.services.discounts.definitions import LoyaltyProgramDefinition, LoyaltyTierDefinition
from app.services.discounts.types import DiscountCandidate, OrderContext, compute_discount_amount


class LoyaltyCalculator:
    @staticmethod
    def resolve_tier(
        program: LoyaltyProgramDefinition, current_points: int
    ) -> LoyaltyTierDefinition:
        """Tier with the greatest threshold not above ``current_points``.

        Falls back to the lowest tier, so a program with tiers always resolves.
        """
        tiers = sorted(program.tiers, key=lambda tier: tier.min_points)
        if not tiers:
            raise ValueError(f"Loyalty program {program.id} defines no tiers")
        resolved = tiers[0]
        for tier in tiers:
            if tier.min_points <= current_points:
                resolved = tier
        return resolved

    def candidate(
        self, program: LoyaltyProgramDefinition | None, context: OrderContext
    ) -> DiscountCandidate | None:
        if program is None or context.loyalty_points is None or not program.tiers:
            return None
        tier = self.resolve_tier(program, context.loyalty_points)
        if tier.discount_percent <= 0:
            return None
        return DiscountCandidate(
            source_type=DiscountSourceType.LOYALTY,
            source_id=str(program.id),
            source_name=f"{program.name} ({tier.name})",
            discount_type=DiscountType.PERCENT,
            discount_value=tier.discount_percent,
            discount_amount=compute_discount_amount(
                DiscountType.PERCENT, tier.discount_percent, context.order_amount
            ),
            stackable=program.stackable,
        )
