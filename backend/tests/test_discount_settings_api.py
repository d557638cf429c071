"""Tests for the discount settings API."""

from decimal import Decimal

from fastapi.testclient import TestClient

from tests.conftest import OTHER_ORG_ID

SETTINGS = "/v1/discount_settings/"


class TestDiscountSettingsApi:
    def test_defaults_without_settings(self, client: TestClient):
        resp = client.get(SETTINGS)
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] is None
        assert data["allow_code_rule_stacking"] is True
        assert Decimal(data["max_combined_percent"]) == Decimal("50")
        assert set(data["role_limits"]) == {"sales", "manager", "admin", "owner"}
        assert data["role_limits"]["owner"]["max_amount"] is None
        assert data["escalation_after_hours"] == 24
        assert data["auto_reject_after_hours"] == 72

    def test_upsert_replaces_configuration(self, client: TestClient):
        created = client.put(
            SETTINGS,
            json={
                "max_combined_percent": "30",
                "role_limits": {"sales": {"max_percent": "5", "max_amount": "100"}},
                "escalation_after_hours": 12,
                "auto_reject_after_hours": 48,
            },
        )
        assert created.status_code == 200
        assert created.json()["id"] is not None
        assert list(created.json()["role_limits"]) == ["sales"]

        updated = client.put(SETTINGS, json={"allow_code_rule_stacking": False})
        assert updated.json()["id"] == created.json()["id"]
        assert updated.json()["allow_code_rule_stacking"] is False
        assert Decimal(updated.json()["max_combined_percent"]) == Decimal("50")
        assert client.get(SETTINGS).json()["escalation_after_hours"] == 24

        logs = client.get(
            "/v1/audit_logs/", params={"resource_type": "discount_settings"}
        ).json()
        assert sorted(log["action"] for log in logs) == ["created", "updated"]

    def test_auto_reject_must_come_after_escalation(self, client: TestClient):
        resp = client.put(
            SETTINGS, json={"escalation_after_hours": 48, "auto_reject_after_hours": 24}
        )
        assert resp.status_code == 422

    def test_role_percent_bounded(self, client: TestClient):
        resp = client.put(SETTINGS, json={"role_limits": {"sales": {"max_percent": "120"}}})
        assert resp.status_code == 422

    def test_settings_are_per_organization(self, client: TestClient):
        client.put(SETTINGS, json={"max_combined_percent": "20"})
        other = client.get(SETTINGS, headers={"X-Organization-Id": str(OTHER_ORG_ID)}).json()
        assert other["id"] is None
        assert Decimal(other["max_combined_percent"]) == Decimal("50")

    def test_settings_drive_approval(self, client: TestClient):
        client.put(SETTINGS, json={"role_limits": {"sales": {"max_percent": "1"}}})
        client.post(
            "/v1/automatic_rules/",
            json={
                "name": "Everyone",
                "conditions": {"rule_type": "order_minimum", "min_amount": "0"},
                "discount_type": "percent",
                "discount_value": "5",
            },
        )
        resp = client.post(
            "/v1/discounts/evaluate",
            json={
                "order_id": "3f2b9a50-5f55-4c1e-9f59-8f0d6cc1a001",
                "order_amount": "100",
                "requested_by": "rep@example.com",
                "requester_role": "sales",
                "apply": False,
            },
        )
        assert resp.json()["requires_approval"] is True

    def test_approval_thresholds_round_trip(self, client: TestClient):
        defaults = client.get(SETTINGS).json()
        assert defaults["approval_threshold_percent"] is None
        assert defaults["approval_threshold_amount"] is None
        assert defaults["approval_for_orders_over"] is None

        resp = client.put(
            SETTINGS,
            json={
                "approval_threshold_percent": "15",
                "approval_threshold_amount": "500",
                "approval_for_orders_over": "10000",
            },
        )
        assert resp.status_code == 200
        data = client.get(SETTINGS).json()
        assert Decimal(data["approval_threshold_percent"]) == Decimal("15")
        assert Decimal(data["approval_threshold_amount"]) == Decimal("500")
        assert Decimal(data["approval_for_orders_over"]) == Decimal("10000")

    def test_threshold_percent_bounded(self, client: TestClient):
        resp = client.put(SETTINGS, json={"approval_threshold_percent": "101"})
        assert resp.status_code == 422

    def test_large_order_threshold_applies_to_owner(self, client: TestClient):
        client.put(SETTINGS, json={"approval_for_orders_over": "5000"})
        client.post(
            "/v1/automatic_rules/",
            json={
                "name": "Everyone",
                "conditions": {"rule_type": "order_minimum", "min_amount": "0"},
                "discount_type": "percent",
                "discount_value": "5",
            },
        )
        payload = {
            "order_amount": "6000",
            "requested_by": "owner@example.com",
            "requester_role": "owner",
            "apply": False,
        }
        resp = client.post(
            "/v1/discounts/evaluate",
            json={**payload, "order_id": "3f2b9a50-5f55-4c1e-9f59-8f0d6cc1a002"},
        )
        assert resp.json()["requires_approval"] is True
        assert "6000" in resp.json()["approval_reason"]

        small = client.post(
            "/v1/discounts/evaluate",
            json={
                **payload,
                "order_id": "3f2b9a50-5f55-4c1e-9f59-8f0d6cc1a003",
                "order_amount": "1000",
            },
        )
        assert small.json()["requires_approval"] is False
