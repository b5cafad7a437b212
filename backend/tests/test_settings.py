"""
Tests for outlet settings.
"""

import uuid
from decimal import Decimal

import pytest

from pos_api.services.domain import SettingsService
from pos_shared.utils.exceptions import NotFoundError
from pos_shared.utils.schemas import SettingsUpdateRequest


class TestSettingsService:
    def test_defaults_without_row(self, db_session, seed_outlet):
        result = SettingsService(db_session).get(seed_outlet.id)

        assert result.gst_enabled is True
        assert result.gst_percentage == Decimal("18")
        assert result.effective_tax_rate == Decimal("18")
        assert result.currency_code == "INR"

    def test_partial_update_creates_row(self, db_session, seed_outlet):
        service = SettingsService(db_session)

        result = service.update(seed_outlet.id, SettingsUpdateRequest(gst_percentage=Decimal("5"), gstin="29ABCDE1234F1Z5"))

        assert result.gst_percentage == Decimal("5")
        assert result.gstin == "29ABCDE1234F1Z5"
        assert result.allow_takeaway is True
        assert service.get(seed_outlet.id).effective_tax_rate == Decimal("5")

    def test_disabling_gst_zeroes_effective_rate(self, db_session, seed_settings):
        result = SettingsService(db_session).update(seed_settings.outlet_id, SettingsUpdateRequest(gst_enabled=False))

        assert result.gst_percentage == Decimal("18")
        assert result.effective_tax_rate == Decimal("0")

    def test_untouched_fields_survive(self, db_session, seed_settings):
        result = SettingsService(db_session).update(
            seed_settings.outlet_id, SettingsUpdateRequest(receipt_footer="Visit again")
        )

        assert result.receipt_footer == "Visit again"
        assert result.business_name == "Spice House"
        assert result.city == "Kolkata"

    def test_null_for_required_field_is_ignored(self, db_session, seed_settings):
        result = SettingsService(db_session).update(
            seed_settings.outlet_id, SettingsUpdateRequest(gst_enabled=None, currency_code=None)
        )

        assert result.gst_enabled is True
        assert result.currency_code == "INR"

    def test_unknown_outlet(self, db_session):
        with pytest.raises(NotFoundError):
            SettingsService(db_session).update(uuid.uuid4(), SettingsUpdateRequest(gst_enabled=False))


class TestSettingsEndpoints:
    def test_get_settings(self, client, staff_headers, seed_settings):
        response = client.get("/api/settings", headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["business_name"] == "Spice House"
        assert Decimal(data["effective_tax_rate"]) == Decimal("18")

    def test_admin_updates_settings(self, client, admin_headers, seed_settings):
        response = client.put("/api/settings", json={"gst_percentage": "12"}, headers=admin_headers)

        assert response.status_code == 200
        assert Decimal(response.json()["gst_percentage"]) == Decimal("12")

    def test_cashier_cannot_update_settings(self, client, cashier_headers, seed_settings):
        response = client.put("/api/settings", json={"gst_enabled": False}, headers=cashier_headers)

        assert response.status_code == 403

    def test_percentage_out_of_range(self, client, admin_headers, seed_settings):
        response = client.put("/api/settings", json={"gst_percentage": "150"}, headers=admin_headers)

        assert response.status_code == 400

    def test_new_rate_applies_to_next_order(self, client, admin_headers, seed_settings, seed_fixed_item, seed_outlet):
        client.put("/api/settings", json={"gst_percentage": "5"}, headers=admin_headers)

        response = client.post(
            "/api/orders",
            json={
                "outlet_id": str(seed_outlet.id),
                "order_type": "TAKEAWAY",
                "items": [{"item_id": str(seed_fixed_item.id), "quantity": 1}],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert Decimal(response.json()["tax"]) == Decimal("6")
        assert Decimal(response.json()["total"]) == Decimal("126")
