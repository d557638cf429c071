"""Seasonal campaign resolution, including recurring windows."""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from app.models.applied_discount import DiscountSourceType
from app.models.seasonal_campaign import RecurrenceType
from app.services.discounts.definitions import Catalog, SeasonalCampaignDefinition
from app.services.discounts.types import DiscountCandidate, OrderContext, compute_discount_amount


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _shift(value: datetime, recurrence: RecurrenceType, steps: int) -> datetime:
    if recurrence == RecurrenceType.WEEKLY:
        return value + timedelta(weeks=steps)
    if recurrence == RecurrenceType.MONTHLY:
        return _add_months(value, steps)
    return _add_months(value, 12 * steps)


def active_window(
    campaign: SeasonalCampaignDefinition, as_of: datetime
) -> tuple[datetime, datetime] | None:
    """The occurrence of ``campaign`` that contains ``as_of``, if any.

    Recurring campaigns repeat their first window every week, month or year
    from ``starts_at`` onwards.
    """
    if as_of < campaign.starts_at:
        return None
    if campaign.starts_at <= as_of < campaign.ends_at:
        return campaign.starts_at, campaign.ends_at
    if not campaign.is_recurring or campaign.recurrence_type is None:
        return None

    recurrence = RecurrenceType(campaign.recurrence_type)
    duration = campaign.ends_at - campaign.starts_at
    if recurrence == RecurrenceType.WEEKLY:
        estimate = (as_of - campaign.starts_at) // timedelta(weeks=1)
    elif recurrence == RecurrenceType.MONTHLY:
        estimate = (as_of.year - campaign.starts_at.year) * 12 + (
            as_of.month - campaign.starts_at.month
        )
    else:
        estimate = as_of.year - campaign.starts_at.year
    # The occurrence containing as_of started in the estimated period or the one before
    for steps in (estimate, estimate - 1):
        if steps < 0:
            continue
        start = _shift(campaign.starts_at, recurrence, steps)
        end = start + duration
        if start <= as_of < end:
            return start, end
    return None


@dataclass(frozen=True)
class SeasonalMatch:
    campaign: SeasonalCampaignDefinition
    window_starts_at: datetime
    window_ends_at: datetime
    candidate: DiscountCandidate


class SeasonalCampaignResolver:
    """Picks the single best campaign running at ``context.as_of``.

    A campaign paired with a promo code only applies when that code was
    submitted. Ties on amount go to the campaign ending soonest.
    """

    def eligible(
        self, campaign: SeasonalCampaignDefinition, context: OrderContext
    ) -> tuple[datetime, datetime] | None:
        window = active_window(campaign, context.as_of)
        if window is None:
            return None
        if campaign.promo_code and (context.promo_code or "").upper() != campaign.promo_code:
            return None
        if context.order_amount < campaign.min_order_amount:
            return None
        if campaign.applicable_services is not None and not (
            campaign.applicable_services & context.service_types
        ):
            return None
        return window

    def resolve(self, catalog: Catalog, context: OrderContext) -> SeasonalMatch | None:
        matches: list[SeasonalMatch] = []
        for campaign in catalog.seasonal_campaigns:
            window = self.eligible(campaign, context)
            if window is None:
                continue
            amount = compute_discount_amount(
                campaign.discount_type,
                campaign.discount_value,
                context.order_amount,
                campaign.max_discount_amount,
            )
            if amount <= Decimal("0"):
                continue
            matches.append(
                SeasonalMatch(
                    campaign=campaign,
                    window_starts_at=window[0],
                    window_ends_at=window[1],
                    candidate=DiscountCandidate(
                        source_type=DiscountSourceType.SEASONAL,
                        source_id=str(campaign.id),
                        source_name=campaign.name,
                        discount_type=campaign.discount_type,
                        discount_value=campaign.discount_value,
                        discount_amount=amount,
                        stackable=campaign.stackable,
                    ),
                )
            )
        if not matches:
            return None
        matches.sort(
            key=lambda m: (-m.candidate.discount_amount, m.window_ends_at, str(m.campaign.id))
        )
        return matches[0]
