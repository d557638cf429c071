"""Volume tier resolution and band configuration checks."""

from collections.abc import Sequence
from decimal import Decimal

from app.models.applied_discount import DiscountSourceType
from app.models.discount_code import DiscountType
from app.services.discounts.definitions import (
    Catalog,
    VolumeBandDefinition,
    VolumeTierDefinition,
)
from app.services.discounts.errors import TierConfigurationError
from app.services.discounts.rules import measure
from app.services.discounts.types import (
    DiscountCandidate,
    NextTierHint,
    OrderContext,
    VolumeMatch,
    compute_discount_amount,
)


def validate_bands(bands: Sequence[tuple[Decimal, Decimal | None]]) -> None:
    """Bands are half-open ``[min, max)`` ranges that must tile the domain.

    Sorted by ``min``, each band's ``max`` must equal the next band's ``min``
    and only the last band may be unbounded.
    """
    if not bands:
        raise TierConfigurationError("At least one band is required")
    ordered = sorted(bands, key=lambda band: band[0])
    for index, (lower, upper) in enumerate(ordered):
        is_last = index == len(ordered) - 1
        if upper is None:
            if not is_last:
                raise TierConfigurationError("Only the last band may have no upper bound")
            continue
        if upper <= lower:
            raise TierConfigurationError(f"Band starting at {lower} must have max > min")
        if not is_last:
            next_lower = ordered[index + 1][0]
            if next_lower < upper:
                raise TierConfigurationError(f"Bands overlap at {next_lower}")
            if next_lower > upper:
                raise TierConfigurationError(f"Gap between {upper} and {next_lower}")


class VolumeTierResolver:
    @staticmethod
    def resolve_tier(
        tier: VolumeTierDefinition, value: Decimal
    ) -> tuple[int, VolumeBandDefinition] | None:
        for index, band in enumerate(sorted(tier.bands, key=lambda b: b.min)):
            if band.contains(value):
                return index, band
        return None

    @staticmethod
    def band_amount(band: VolumeBandDefinition, order_amount: Decimal) -> Decimal:
        if band.discount_percent is not None:
            return compute_discount_amount(
                DiscountType.PERCENT, band.discount_percent, order_amount
            )
        return compute_discount_amount(
            DiscountType.FIXED, band.discount_fixed or Decimal("0"), order_amount
        )

    @staticmethod
    def applies_to(tier: VolumeTierDefinition, context: OrderContext) -> bool:
        return tier.service_type is None or tier.service_type in context.service_types

    def resolve(self, catalog: Catalog, context: OrderContext) -> VolumeMatch | None:
        """Match against the highest-priority configuration that applies to the order."""
        configs = sorted(
            (tier for tier in catalog.volume_tiers if self.applies_to(tier, context)),
            key=lambda tier: (-tier.priority, str(tier.id)),
        )
        if not configs:
            return None
        tier = configs[0]
        value = measure(tier.measurement_type, context)
        bands = sorted(tier.bands, key=lambda b: b.min)
        found = self.resolve_tier(tier, value)
        if found is None:
            if value < bands[0].min:
                # Below the first band: nothing to apply yet, but the first band is reachable
                return VolumeMatch(
                    candidate=None,
                    band_index=-1,
                    measured_value=value,
                    next_tier=self._next_tier_hint(bands, -1, value),
                )
            return None
        index, band = found
        amount = self.band_amount(band, context.order_amount)
        return VolumeMatch(
            candidate=self._candidate(tier, band, amount) if amount > 0 else None,
            band_index=index,
            measured_value=value,
            next_tier=self._next_tier_hint(bands, index, value),
        )

    @staticmethod
    def _candidate(
        tier: VolumeTierDefinition, band: VolumeBandDefinition, amount: Decimal
    ) -> DiscountCandidate:
        is_percent = band.discount_percent is not None
        return DiscountCandidate(
            source_type=DiscountSourceType.VOLUME,
            source_id=str(tier.id),
            source_name=f"{tier.name} ({band.label})" if band.label else tier.name,
            discount_type=DiscountType.PERCENT if is_percent else DiscountType.FIXED,
            discount_value=(
                band.discount_percent if is_percent else band.discount_fixed  # type: ignore[arg-type]
            ),
            discount_amount=amount,
            stackable=tier.stackable,
        )

    @staticmethod
    def _next_tier_hint(
        bands: list[VolumeBandDefinition], index: int, value: Decimal
    ) -> NextTierHint | None:
        if index + 1 >= len(bands):
            return None
        upcoming = bands[index + 1]
        current_percent = bands[index].discount_percent if index >= 0 else Decimal("0")
        additional = None
        if current_percent is not None and upcoming.discount_percent is not None:
            additional = upcoming.discount_percent - current_percent
        return NextTierHint(
            label=upcoming.label,
            amount_to_reach=upcoming.min - value,
            additional_percent=additional,
        )
