"""Loads an organization's discount definitions into an immutable snapshot."""

import logging
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.automatic_rule import AutomaticRule
from app.models.discount_code import DiscountCode, DiscountType
from app.models.discount_settings import DiscountSettings
from app.models.loyalty_program import LoyaltyProgram
from app.models.seasonal_campaign import SeasonalCampaign
from app.models.shared import ensure_aware, to_decimal, utc_now
from app.models.volume_discount_tier import VolumeDiscountTier
from app.repositories.automatic_rule_repository import AutomaticRuleRepository
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.repositories.discount_settings_repository import DiscountSettingsRepository
from app.repositories.loyalty_program_repository import LoyaltyProgramRepository
from app.repositories.organization_repository import OrganizationRepository
from app.repositories.seasonal_campaign_repository import SeasonalCampaignRepository
from app.repositories.volume_tier_repository import VolumeTierRepository
from app.schemas.automatic_rule import parse_rule_condition
from app.services.discounts.definitions import (
    ApprovalPolicy,
    Catalog,
    LoyaltyProgramDefinition,
    LoyaltyTierDefinition,
    PromoCodeDefinition,
    RoleLimitDefinition,
    RuleDefinition,
    SeasonalCampaignDefinition,
    StackingPolicy,
    VolumeBandDefinition,
    VolumeTierDefinition,
)
from app.services.discounts.errors import OrganizationNotFound

logger = logging.getLogger(__name__)


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else to_decimal(value)


def _string_set(values: list[Any] | None) -> frozenset[str] | None:
    if values is None:
        return None
    return frozenset(str(v) for v in values)


def promo_code_definition(code: DiscountCode) -> PromoCodeDefinition:
    return PromoCodeDefinition(
        id=code.id,  # type: ignore[arg-type]
        code=str(code.code).upper(),
        name=str(code.name),
        discount_type=DiscountType(code.discount_type),
        discount_value=to_decimal(code.discount_value),
        max_discount_amount=_optional_decimal(code.max_discount_amount),
        min_order_amount=to_decimal(code.min_order_amount),
        max_uses_total=code.max_uses_total,  # type: ignore[arg-type]
        max_uses_per_customer=code.max_uses_per_customer,  # type: ignore[arg-type]
        applicable_services=_string_set(code.applicable_services),  # type: ignore[arg-type]
        applicable_tiers=_string_set(code.applicable_tiers),  # type: ignore[arg-type]
        specific_customer_ids=_string_set(code.specific_customer_ids),  # type: ignore[arg-type]
        new_customers_only=bool(code.new_customers_only),
        existing_customers_only=bool(code.existing_customers_only),
    )


def rule_definition(rule: AutomaticRule, sequence: int = 0) -> RuleDefinition:
    return RuleDefinition(
        id=rule.id,  # type: ignore[arg-type]
        name=str(rule.name),
        priority=int(rule.priority or 0),
        condition=parse_rule_condition(str(rule.rule_type), rule.conditions),  # type: ignore[arg-type]
        discount_type=DiscountType(rule.discount_type),
        discount_value=to_decimal(rule.discount_value),
        max_discount_amount=_optional_decimal(rule.max_discount_amount),
        stackable=bool(rule.stackable),
        stack_with_codes=bool(rule.stack_with_codes),
        sequence=sequence,
    )


def loyalty_program_definition(program: LoyaltyProgram) -> LoyaltyProgramDefinition:
    tiers = tuple(
        sorted(
            (
                LoyaltyTierDefinition(
                    name=str(tier["name"]),
                    min_points=int(tier.get("min_points", 0)),
                    discount_percent=to_decimal(tier.get("discount_percent")),
                    perks=tuple(tier.get("perks") or ()),
                )
                for tier in program.tiers or []
            ),
            key=lambda tier: tier.min_points,
        )
    )
    return LoyaltyProgramDefinition(
        id=program.id,  # type: ignore[arg-type]
        name=str(program.name),
        tiers=tiers,
        stackable=bool(program.stackable),
    )


def volume_tier_definition(tier: VolumeDiscountTier) -> VolumeTierDefinition:
    bands = tuple(
        sorted(
            (
                VolumeBandDefinition(
                    min=to_decimal(band.get("min")),
                    max=_optional_decimal(band.get("max")),
                    discount_percent=_optional_decimal(band.get("discount_percent")),
                    discount_fixed=_optional_decimal(band.get("discount_fixed")),
                    label=band.get("label"),
                )
                for band in tier.bands or []
            ),
            key=lambda band: band.min,
        )
    )
    return VolumeTierDefinition(
        id=tier.id,  # type: ignore[arg-type]
        name=str(tier.name),
        measurement_type=str(tier.measurement_type),
        bands=bands,
        service_type=tier.service_type,  # type: ignore[arg-type]
        stackable=bool(tier.stackable),
        priority=int(tier.priority or 0),
    )


def seasonal_campaign_definition(campaign: SeasonalCampaign) -> SeasonalCampaignDefinition:
    return SeasonalCampaignDefinition(
        id=campaign.id,  # type: ignore[arg-type]
        name=str(campaign.name),
        starts_at=ensure_aware(campaign.starts_at),  # type: ignore[arg-type]
        ends_at=ensure_aware(campaign.ends_at),  # type: ignore[arg-type]
        discount_type=DiscountType(campaign.discount_type),
        discount_value=to_decimal(campaign.discount_value),
        is_recurring=bool(campaign.is_recurring),
        recurrence_type=campaign.recurrence_type,  # type: ignore[arg-type]
        max_discount_amount=_optional_decimal(campaign.max_discount_amount),
        min_order_amount=to_decimal(campaign.min_order_amount),
        applicable_services=_string_set(campaign.applicable_services),  # type: ignore[arg-type]
        promo_code=str(campaign.promo_code).upper() if campaign.promo_code else None,
        stackable=bool(campaign.stackable),
    )


def _role_limits(raw: dict[str, Any]) -> MappingProxyType[str, RoleLimitDefinition]:
    return MappingProxyType(
        {
            role: RoleLimitDefinition(
                max_percent=to_decimal(limit.get("max_percent")),
                max_amount=_optional_decimal(limit.get("max_amount")),
            )
            for role, limit in raw.items()
        }
    )


def stacking_policy(row: DiscountSettings | None) -> StackingPolicy:
    if row is None:
        return StackingPolicy(
            allow_code_rule_stacking=settings.DISCOUNT_ALLOW_CODE_RULE_STACKING,
            max_combined_percent=settings.DISCOUNT_MAX_COMBINED_PERCENT,
        )
    return StackingPolicy(
        allow_code_rule_stacking=bool(row.allow_code_rule_stacking),
        max_combined_percent=to_decimal(row.max_combined_percent),
    )


def approval_policy(row: DiscountSettings | None) -> ApprovalPolicy:
    """Approval configuration; an organization without role limits uses the defaults."""
    if row is None:
        return ApprovalPolicy(
            require_approval=True,
            role_limits=_role_limits(settings.default_role_limits),
            escalation_after_hours=settings.DISCOUNT_ESCALATION_AFTER_HOURS,
            auto_reject_after_hours=settings.DISCOUNT_AUTO_REJECT_AFTER_HOURS,
            threshold_percent=settings.DISCOUNT_APPROVAL_THRESHOLD_PERCENT,
            threshold_amount=settings.DISCOUNT_APPROVAL_THRESHOLD_AMOUNT,
            orders_over=settings.DISCOUNT_APPROVAL_FOR_ORDERS_OVER,
        )
    return ApprovalPolicy(
        require_approval=bool(row.require_approval),
        role_limits=_role_limits(row.role_limits or settings.default_role_limits),  # type: ignore[arg-type]
        escalation_after_hours=int(row.escalation_after_hours),
        auto_reject_after_hours=int(row.auto_reject_after_hours),
        default_approver_id=row.default_approver_id,  # type: ignore[arg-type]
        escalation_approver_id=row.escalation_approver_id,  # type: ignore[arg-type]
        threshold_percent=_optional_decimal(row.approval_threshold_percent),
        threshold_amount=_optional_decimal(row.approval_threshold_amount),
        orders_over=_optional_decimal(row.approval_for_orders_over),
    )


class DiscountCatalog:
    """Reads every definition kind for one organization at one instant."""

    def __init__(self, db: Session):
        self.db = db

    def load_policies(self, organization_id: UUID) -> tuple[StackingPolicy, ApprovalPolicy]:
        row = DiscountSettingsRepository(self.db).get_by_organization(organization_id)
        return stacking_policy(row), approval_policy(row)

    def load_catalog(self, organization_id: UUID, as_of: datetime | None = None) -> Catalog:
        """Snapshot of the definitions valid at ``as_of`` (default: now).

        Raises:
            OrganizationNotFound: If the organization does not exist. Having no
                definitions at all is a valid, empty catalog.
        """
        as_of = ensure_aware(as_of) if as_of is not None else utc_now()
        if not OrganizationRepository(self.db).exists(organization_id):
            raise OrganizationNotFound(organization_id)

        code_repo = DiscountCodeRepository(self.db)
        promo_codes = {
            str(code.code).upper(): promo_code_definition(code)
            for code in code_repo.get_valid_as_of(organization_id, as_of)
        }
        expired_codes = frozenset(
            code.upper() for code in code_repo.get_expired_codes(organization_id, as_of)
        )

        rules = tuple(self._rules(organization_id, as_of))

        program = LoyaltyProgramRepository(self.db).get_by_organization(organization_id)
        loyalty: LoyaltyProgramDefinition | None = None
        if program is not None and program.is_active:
            loyalty = loyalty_program_definition(program)

        volume_tiers = tuple(
            volume_tier_definition(tier)
            for tier in VolumeTierRepository(self.db).get_active(organization_id)
            if tier.bands
        )

        campaigns = tuple(
            seasonal_campaign_definition(campaign)
            for campaign in SeasonalCampaignRepository(self.db).get_candidates_as_of(
                organization_id, as_of
            )
        )

        stacking, approval = self.load_policies(organization_id)
        logger.debug(
            "Loaded catalog for %s: %d codes, %d rules, %d volume tiers, %d campaigns",
            organization_id,
            len(promo_codes),
            len(rules),
            len(volume_tiers),
            len(campaigns),
        )
        return Catalog(
            organization_id=organization_id,
            as_of=as_of,
            promo_codes=MappingProxyType(promo_codes),
            expired_codes=expired_codes - promo_codes.keys(),
            rules=rules,
            loyalty_program=loyalty,
            volume_tiers=volume_tiers,
            seasonal_campaigns=campaigns,
            stacking_policy=stacking,
            approval_policy=approval,
        )

    def _rules(self, organization_id: UUID, as_of: datetime) -> list[RuleDefinition]:
        rules: list[RuleDefinition] = []
        rows = AutomaticRuleRepository(self.db).get_active_as_of(organization_id, as_of)
        for sequence, rule in enumerate(rows):
            try:
                rules.append(rule_definition(rule, sequence))
            except ValidationError:
                logger.warning("Skipping automatic rule %s with invalid conditions", rule.id)
        return rules
