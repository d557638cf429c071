"""Tests for the loyalty program API."""

from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tests.conftest import OTHER_ORG_ID

LOYALTY = "/v1/loyalty"


@pytest.fixture
def program(client: TestClient) -> dict:
    resp = client.put(
        f"{LOYALTY}/program",
        json={"points_for_signup": 100, "points_for_referral": 250, "min_points_to_redeem": 500},
    )
    assert resp.status_code == 200
    return resp.json()


def _enroll(client: TestClient, customer_id=None, **extra) -> dict:
    resp = client.post(
        f"{LOYALTY}/enroll", json={"customer_id": str(customer_id or uuid4()), **extra}
    )
    assert resp.status_code == 201
    return resp.json()


class TestProgram:
    def test_not_configured(self, client: TestClient):
        assert client.get(f"{LOYALTY}/program").status_code == 404

    def test_configure_with_default_tiers(self, client: TestClient, program: dict):
        assert [tier["name"] for tier in program["tiers"]] == [
            "Bronze",
            "Silver",
            "Gold",
            "Platinum",
        ]
        assert client.get(f"{LOYALTY}/program").json()["id"] == program["id"]

    def test_reconfigure_keeps_program(self, client: TestClient, program: dict):
        resp = client.put(
            f"{LOYALTY}/program",
            json={"points_per_dollar": "2", "tiers": [{"name": "Member", "min_points": 0}]},
        )
        assert resp.status_code == 200
        assert resp.json()["id"] == program["id"]
        assert Decimal(resp.json()["points_per_dollar"]) == Decimal("2")
        assert [tier["name"] for tier in resp.json()["tiers"]] == ["Member"]

        logs = client.get(f"/v1/audit_logs/loyalty_program/{program['id']}").json()
        assert {log["action"] for log in logs} == {"created", "updated"}

    def test_tiers_must_ascend(self, client: TestClient):
        resp = client.put(
            f"{LOYALTY}/program",
            json={
                "tiers": [
                    {"name": "Gold", "min_points": 5000},
                    {"name": "Silver", "min_points": 1000},
                ]
            },
        )
        assert resp.status_code == 422

    def test_programs_are_per_organization(self, client: TestClient, program: dict):
        resp = client.get(
            f"{LOYALTY}/program", headers={"X-Organization-Id": str(OTHER_ORG_ID)}
        )
        assert resp.status_code == 404


class TestMembers:
    def test_enroll_without_program(self, client: TestClient):
        resp = client.post(f"{LOYALTY}/enroll", json={"customer_id": str(uuid4())})
        assert resp.status_code == 400

    def test_enroll_credits_signup_bonus(self, client: TestClient, program: dict):
        member = _enroll(client)
        assert member["current_points"] == 100
        assert member["current_tier"]["name"] == "Bronze"
        assert len(member["referral_code"]) == 8

    def test_enroll_twice(self, client: TestClient, program: dict):
        customer_id = uuid4()
        _enroll(client, customer_id)
        resp = client.post(f"{LOYALTY}/enroll", json={"customer_id": str(customer_id)})
        assert resp.status_code == 400

    def test_referral_credits_referrer(self, client: TestClient, program: dict):
        referrer_id = uuid4()
        referrer = _enroll(client, referrer_id)
        referred = _enroll(client, referred_by_code=referrer["referral_code"].lower())
        assert referred["referred_by_code"] == referrer["referral_code"]

        refreshed = client.get(f"{LOYALTY}/customers/{referrer_id}").json()
        assert refreshed["current_points"] == 350
        assert refreshed["referrals_count"] == 1

    def test_list_members(self, client: TestClient, program: dict):
        _enroll(client)
        _enroll(client)
        resp = client.get(f"{LOYALTY}/customers")
        assert resp.headers["X-Total-Count"] == "2"
        assert len(resp.json()) == 2

    def test_unknown_member(self, client: TestClient, program: dict):
        missing = uuid4()
        assert client.get(f"{LOYALTY}/customers/{missing}").status_code == 404
        assert client.get(f"{LOYALTY}/customers/{missing}/transactions").status_code == 404
        assert client.get(f"{LOYALTY}/customers/{missing}/reconciliation").status_code == 404


class TestPoints:
    def test_earn_redeem_and_reconcile(self, client: TestClient, program: dict):
        customer_id = uuid4()
        _enroll(client, customer_id)

        earned = client.post(
            f"{LOYALTY}/earn",
            json={"customer_id": str(customer_id), "order_amount": "1200.99", "bonus_points": 10},
        )
        assert earned.status_code == 200
        assert earned.json()["current_points"] == 1310
        assert earned.json()["total_orders"] == 1
        assert earned.json()["current_tier"]["name"] == "Silver"

        redeemed = client.post(
            f"{LOYALTY}/redeem", json={"customer_id": str(customer_id), "points": 800}
        )
        assert redeemed.status_code == 200
        assert redeemed.json()["points_redeemed"] == 800
        assert Decimal(redeemed.json()["discount_value"]) == Decimal("8.00")
        assert redeemed.json()["balance_after"] == 510

        transactions = client.get(f"{LOYALTY}/customers/{customer_id}/transactions")
        assert transactions.headers["X-Total-Count"] == "3"
        assert {t["transaction_type"] for t in transactions.json()} == {
            "earn_signup",
            "earn_purchase",
            "redeem",
        }

        reconciliation = client.get(f"{LOYALTY}/customers/{customer_id}/reconciliation").json()
        assert reconciliation["is_consistent"] is True
        assert reconciliation["ledger_points"] == 510
        assert reconciliation["transaction_count"] == 3

    def test_earn_enrolls_unknown_customer(self, client: TestClient, program: dict):
        customer_id = uuid4()
        resp = client.post(
            f"{LOYALTY}/earn", json={"customer_id": str(customer_id), "order_amount": "50"}
        )
        assert resp.status_code == 200
        assert resp.json()["current_points"] == 150

    def test_redeem_below_minimum(self, client: TestClient, program: dict):
        customer_id = uuid4()
        _enroll(client, customer_id)
        resp = client.post(
            f"{LOYALTY}/redeem", json={"customer_id": str(customer_id), "points": 100}
        )
        assert resp.status_code == 400
        assert "Minimum 500" in resp.json()["detail"]

    def test_redeem_more_than_balance(self, client: TestClient, program: dict):
        customer_id = uuid4()
        _enroll(client, customer_id)
        resp = client.post(
            f"{LOYALTY}/redeem", json={"customer_id": str(customer_id), "points": 600}
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Insufficient points"

    def test_adjust(self, client: TestClient, program: dict):
        customer_id = uuid4()
        _enroll(client, customer_id)
        resp = client.post(
            f"{LOYALTY}/adjust",
            json={
                "customer_id": str(customer_id),
                "points": -40,
                "reason": "Goodwill reversal",
                "adjusted_by": "ops@example.com",
            },
        )
        assert resp.status_code == 201
        assert resp.json()["transaction_type"] == "adjust"
        assert resp.json()["balance_after"] == 60
        assert resp.json()["created_by"] == "ops@example.com"

    def test_adjust_cannot_go_negative(self, client: TestClient, program: dict):
        customer_id = uuid4()
        _enroll(client, customer_id)
        resp = client.post(
            f"{LOYALTY}/adjust",
            json={"customer_id": str(customer_id), "points": -500, "reason": "Oops"},
        )
        assert resp.status_code == 400

    def test_adjust_requires_non_zero_points(self, client: TestClient, program: dict):
        resp = client.post(
            f"{LOYALTY}/adjust",
            json={"customer_id": str(uuid4()), "points": 0, "reason": "Nothing"},
        )
        assert resp.status_code == 422
