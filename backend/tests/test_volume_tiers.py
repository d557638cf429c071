"""Tests for volume tier bands, resolution and next-tier hints."""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.schemas.volume_tier import VolumeBand, VolumeTierCreate
from app.services.discounts.definitions import (
    Catalog,
    VolumeBandDefinition,
    VolumeTierDefinition,
)
from app.services.discounts.errors import TierConfigurationError
from app.services.discounts.types import OrderContext, ServiceLine
from app.services.discounts.volume import VolumeTierResolver, validate_bands
from tests.conftest import DEFAULT_ORG_ID

D = Decimal


def _tier(measurement_type="amount", service_type=None, priority=0, **kwargs):
    bands = kwargs.pop(
        "bands",
        (
            VolumeBandDefinition(D("1000"), D("5000"), discount_percent=D("5"), label="Bronze"),
            VolumeBandDefinition(D("5000"), D("10000"), discount_percent=D("8"), label="Silver"),
            VolumeBandDefinition(D("10000"), None, discount_percent=D("12"), label="Gold"),
        ),
    )
    return VolumeTierDefinition(
        id=uuid4(),
        name="Volume",
        measurement_type=measurement_type,
        bands=bands,
        service_type=service_type,
        priority=priority,
        **kwargs,
    )


def _catalog(*tiers):
    return Catalog(
        organization_id=DEFAULT_ORG_ID, as_of=datetime(2026, 3, 1, tzinfo=UTC), volume_tiers=tiers
    )


def _context(amount="6000", services=()):
    return OrderContext(
        order_amount=D(amount), as_of=datetime(2026, 3, 1, tzinfo=UTC), services=services
    )


class TestValidateBands:
    def test_contiguous_bands_pass(self):
        validate_bands([(D("0"), D("10")), (D("10"), D("20")), (D("20"), None)])

    def test_unordered_input_is_sorted_first(self):
        validate_bands([(D("20"), None), (D("0"), D("10")), (D("10"), D("20"))])

    @pytest.mark.parametrize(
        ("bands", "message"),
        [
            ([], "At least one band"),
            ([(D("0"), D("10")), (D("5"), None)], "overlap"),
            ([(D("0"), D("10")), (D("12"), None)], "Gap"),
            ([(D("0"), None), (D("10"), None)], "last band"),
            ([(D("10"), D("10"))], "max > min"),
        ],
    )
    def test_invalid_layouts(self, bands, message):
        with pytest.raises(TierConfigurationError, match=message):
            validate_bands(bands)

    def test_schema_rejects_overlapping_bands(self):
        with pytest.raises(ValidationError):
            VolumeTierCreate(
                name="Broken",
                measurement_type="amount",
                bands=[
                    VolumeBand(min=D("0"), max=D("100"), discount_percent=D("5")),
                    VolumeBand(min=D("50"), discount_percent=D("10")),
                ],
            )

    def test_band_needs_exactly_one_discount(self):
        with pytest.raises(ValidationError):
            VolumeBand(min=D("0"), discount_percent=D("5"), discount_fixed=D("10"))
        with pytest.raises(ValidationError):
            VolumeBand(min=D("0"))


class TestVolumeTierResolver:
    resolver = VolumeTierResolver()

    def test_half_open_bands(self):
        tier = _tier()
        assert self.resolver.resolve_tier(tier, D("4999.99"))[1].label == "Bronze"
        assert self.resolver.resolve_tier(tier, D("5000"))[1].label == "Silver"
        assert self.resolver.resolve_tier(tier, D("1000000"))[1].label == "Gold"
        assert self.resolver.resolve_tier(tier, D("999")) is None

    def test_candidate_and_next_tier_hint(self):
        match = self.resolver.resolve(_catalog(_tier()), _context("6000"))

        assert match.candidate.discount_amount == D("480.00")
        assert match.candidate.source_name == "Volume (Silver)"
        assert match.next_tier.label == "Gold"
        assert match.next_tier.amount_to_reach == D("4000")
        assert match.next_tier.additional_percent == D("4")

    def test_top_band_has_no_hint(self):
        match = self.resolver.resolve(_catalog(_tier()), _context("20000"))
        assert match.candidate.discount_value == D("12")
        assert match.next_tier is None

    def test_below_first_band_only_hints(self):
        match = self.resolver.resolve(_catalog(_tier()), _context("400"))
        assert match.candidate is None
        assert match.next_tier.label == "Bronze"
        assert match.next_tier.amount_to_reach == D("600")
        assert match.next_tier.additional_percent == D("5")

    def test_fixed_band(self):
        tier = _tier(
            bands=(
                VolumeBandDefinition(D("0"), D("10"), discount_fixed=D("0")),
                VolumeBandDefinition(D("10"), None, discount_fixed=D("75")),
            ),
            measurement_type="quantity",
        )
        services = (ServiceLine("window_cleaning", D("12")),)
        match = self.resolver.resolve(_catalog(tier), _context("900", services))
        assert match.candidate.discount_type.value == "fixed"
        assert match.candidate.discount_amount == D("75.00")

    def test_highest_priority_applicable_config_wins(self):
        generic = _tier(priority=1)
        windows = _tier(
            service_type="window_cleaning",
            priority=5,
            bands=(VolumeBandDefinition(D("0"), None, discount_percent=D("20")),),
        )
        roof_order = _context("6000", (ServiceLine("roof"),))
        window_order = _context("6000", (ServiceLine("window_cleaning"),))

        assert self.resolver.resolve(_catalog(generic, windows), roof_order).candidate.discount_value == D("8")
        assert self.resolver.resolve(_catalog(generic, windows), window_order).candidate.discount_value == D("20")

    def test_no_configuration(self):
        assert self.resolver.resolve(_catalog(), _context()) is None
