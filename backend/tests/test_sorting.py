"""Tests for column sorting across API endpoints and the sorting utility."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by, parse_order_by
from app.models.discount_code import DiscountCode
from app.repositories.discount_code_repository import DiscountCodeRepository
from tests.conftest import DEFAULT_ORG_ID

# ---------------------------------------------------------------------------
# Unit tests for the order_by parser
# ---------------------------------------------------------------------------


class TestParseOrderBy:
    @pytest.mark.parametrize("raw", [None, "", " , "])
    def test_empty(self, raw):
        assert parse_order_by(raw, DiscountCode) == []

    def test_field_and_direction(self):
        assert parse_order_by("code:desc", DiscountCode) == [("code", "desc")]

    def test_no_direction_defaults_to_asc(self):
        assert parse_order_by("code", DiscountCode) == [("code", "asc")]

    def test_invalid_direction_falls_back_to_default(self):
        assert parse_order_by("code:sideways", DiscountCode) == [("code", "desc")]
        assert parse_order_by("code:sideways", DiscountCode, "asc") == [("code", "asc")]

    def test_multiple_terms(self):
        assert parse_order_by("times_used:DESC, code:asc", DiscountCode) == [
            ("times_used", "desc"),
            ("code", "asc"),
        ]

    def test_unknown_and_private_fields_dropped(self):
        assert parse_order_by("bogus:asc,_sa_instance_state,code", DiscountCode) == [
            ("code", "asc")
        ]

    def test_repeated_field_keeps_first(self):
        assert parse_order_by("code:desc,code:asc", DiscountCode) == [("code", "desc")]


# ---------------------------------------------------------------------------
# apply_order_by against real queries
# ---------------------------------------------------------------------------


@pytest.fixture
def codes(make_code):
    make_code("BRAVO", discount_value=Decimal("20"))
    make_code("ALPHA", discount_value=Decimal("30"))
    make_code("CHARLIE", discount_value=Decimal("20"))


class TestApplyOrderBy:
    def _query(self, db_session: Session):
        return db_session.query(DiscountCode).filter(
            DiscountCode.organization_id == DEFAULT_ORG_ID
        )

    def test_sort_by_field(self, db_session: Session, codes):
        result = apply_order_by(self._query(db_session), DiscountCode, "code:asc").all()
        assert [c.code for c in result] == ["ALPHA", "BRAVO", "CHARLIE"]

    def test_multiple_terms(self, db_session: Session, codes):
        result = apply_order_by(
            self._query(db_session), DiscountCode, "discount_value:asc,code:desc"
        ).all()
        assert [c.code for c in result] == ["CHARLIE", "BRAVO", "ALPHA"]

    def test_invalid_field_uses_default(self, db_session: Session, codes):
        result = apply_order_by(
            self._query(db_session), DiscountCode, "bogus:asc", default_field="code"
        ).all()
        assert [c.code for c in result] == ["CHARLIE", "BRAVO", "ALPHA"]


class TestRepositorySorting:
    def test_discount_code_repo_sort(self, db_session: Session, codes):
        repo = DiscountCodeRepository(db_session)
        result = repo.get_all(DEFAULT_ORG_ID, order_by="code:desc")
        assert [c.code for c in result] == ["CHARLIE", "BRAVO", "ALPHA"]

    def test_sort_with_pagination(self, db_session: Session, codes):
        repo = DiscountCodeRepository(db_session)
        page = repo.get_all(DEFAULT_ORG_ID, skip=1, limit=1, order_by="code:asc")
        assert [c.code for c in page] == ["BRAVO"]


class TestEndpointSorting:
    def test_discount_codes_sorting(self, client: TestClient, codes):
        response = client.get("/v1/discount_codes/", params={"order_by": "code:desc"})
        assert response.status_code == 200
        assert [c["code"] for c in response.json()] == ["CHARLIE", "BRAVO", "ALPHA"]
        assert response.headers["X-Total-Count"] == "3"

    def test_invalid_direction_returns_results(self, client: TestClient, codes):
        response = client.get("/v1/discount_codes/", params={"order_by": "code:sideways"})
        assert response.status_code == 200
        assert len(response.json()) == 3

    @pytest.mark.parametrize(
        "path",
        [
            "/v1/automatic_rules/",
            "/v1/volume_tiers/",
            "/v1/seasonal_campaigns/",
            "/v1/loyalty/customers",
            "/v1/audit_logs/",
            "/v1/discounts/approvals",
            "/v1/organizations/",
        ],
    )
    def test_list_endpoints_accept_order_by(self, client: TestClient, path: str):
        response = client.get(path, params={"order_by": "created_at:asc"})
        assert response.status_code == 200
