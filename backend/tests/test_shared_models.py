"""Tests for shared model utilities."""

import uuid
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.models.shared import (
    DEFAULT_ORGANIZATION_ID,
    UUIDType,
    ensure_aware,
    generate_uuid,
    round_money,
    to_decimal,
    utc_now,
)


class TestGenerateUuid:
    def test_returns_uuid4(self):
        result = generate_uuid()
        assert isinstance(result, uuid.UUID)
        assert result.version == 4

    def test_returns_unique_values(self):
        results = {generate_uuid() for _ in range(10)}
        assert len(results) == 10


class TestUtcNow:
    def test_returns_utc(self):
        result = utc_now()
        assert result.tzinfo == UTC

    def test_returns_current_time(self):
        before = datetime.now(UTC)
        result = utc_now()
        after = datetime.now(UTC)
        assert before <= result <= after


class TestEnsureAware:
    def test_naive_is_treated_as_utc(self):
        naive = datetime(2026, 7, 1, 12, 0)
        assert ensure_aware(naive) == datetime(2026, 7, 1, 12, 0, tzinfo=UTC)

    def test_aware_is_unchanged(self):
        aware = datetime(2026, 7, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert ensure_aware(aware) is aware


class TestMoney:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, Decimal("0")), (12, Decimal("12")), (0.1, Decimal("0.1")), ("3.50", Decimal("3.50"))],
    )
    def test_to_decimal(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Decimal("10.005"), Decimal("10.01")),
            (Decimal("10.004"), Decimal("10.00")),
            (Decimal("-10.005"), Decimal("-10.01")),
            (Decimal("7"), Decimal("7.00")),
        ],
    )
    def test_round_money_half_up(self, value, expected):
        assert round_money(value) == expected


class TestDefaultOrganizationId:
    def test_value(self):
        assert str(DEFAULT_ORGANIZATION_ID) == "00000000-0000-0000-0000-000000000001"


class TestUUIDType:
    def test_cache_ok(self):
        assert UUIDType.cache_ok is True

    def test_process_bind_param_none(self):
        assert UUIDType().process_bind_param(None, None) is None

    def test_process_bind_param_uuid(self):
        val = uuid.uuid4()
        assert UUIDType().process_bind_param(val, None) == str(val)

    def test_process_bind_param_string_is_normalized(self):
        val = "12345678123456781234567812345678"
        assert UUIDType().process_bind_param(val, None) == "12345678-1234-5678-1234-567812345678"

    def test_process_result_value_none(self):
        assert UUIDType().process_result_value(None, None) is None

    def test_process_result_value_uuid(self):
        val = uuid.uuid4()
        assert UUIDType().process_result_value(val, None) is val

    def test_process_result_value_string(self):
        val = "12345678-1234-5678-1234-567812345678"
        result = UUIDType().process_result_value(val, None)
        assert isinstance(result, uuid.UUID)
        assert str(result) == val
