"""
Tests para contabilidad: cierres, depósitos y cuentas por pagar
"""

from datetime import datetime, timezone

import pytest
from decimal import Decimal
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.main import app
from app.modules.contabilidad.models import PayableFrequency
from app.modules.contabilidad.service import (
    add_months_keeping_day, next_due_date_from, normalize_transfer_bank, validate_transfer
)


client = TestClient(app)


def close_payload(**overrides):
    payload = {
        "type": "TIENDA",
        "status": "ok",
        "cash": "1500",
        "transfer": "0",
        "card": "300",
        "expenses": "100",
        "cash_delivered": "1400",
    }
    payload.update(overrides)
    return payload


class TestHelpers:
    """Reglas puras de contabilidad"""

    def test_monthly_due_date_clamps_day(self):
        paid = datetime(2025, 1, 31, 12, 0, tzinfo=timezone.utc)
        assert add_months_keeping_day(paid, 1) == datetime(2025, 2, 28, 12, 0, tzinfo=timezone.utc)

    def test_due_date_by_frequency(self):
        paid = datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)
        assert next_due_date_from(PayableFrequency.BIWEEKLY, paid) == datetime(2025, 3, 25, 15, 0, tzinfo=timezone.utc)
        assert next_due_date_from(PayableFrequency.MONTHLY, paid) == datetime(2025, 4, 10, 15, 0, tzinfo=timezone.utc)
        assert next_due_date_from(PayableFrequency.ONE_TIME, paid) == paid

    def test_transfer_needs_bank(self):
        with pytest.raises(HTTPException) as exc:
            validate_transfer(Decimal("500"), "  ")
        assert exc.value.status_code == 400
        validate_transfer(Decimal("0"), None)

    def test_bank_normalization(self):
        assert normalize_transfer_bank(" popular ") == "POPULAR"
        assert normalize_transfer_bank("Scotiabank") == "Scotiabank"
        assert normalize_transfer_bank("") is None


class TestClosesAPI:
    """Cierres de caja"""

    def test_sellers_are_rejected(self, seller_headers):
        assert client.get("/contabilidad/closes", headers=seller_headers).status_code == 403

    def test_transfer_without_bank(self, assistant_headers):
        response = client.post("/contabilidad/closes", json=close_payload(transfer="500"), headers=assistant_headers)
        assert response.status_code == 400

    def test_create_and_filter(self, assistant_headers):
        response = client.post(
            "/contabilidad/closes",
            json=close_payload(transfer="500", transfer_bank="bhd"),
            headers=assistant_headers
        )
        assert response.status_code == 201
        assert response.json()["transfer_bank"] == "BHD"

        assert len(client.get("/contabilidad/closes", params={"type": "tienda"}, headers=assistant_headers).json()) == 1
        assert client.get("/contabilidad/closes", params={"type": "POS"}, headers=assistant_headers).json() == []

    def test_assistant_only_edits_own_closes(self, admin_headers, assistant_headers):
        admin_close = client.post("/contabilidad/closes", json=close_payload(), headers=admin_headers).json()
        own_close = client.post("/contabilidad/closes", json=close_payload(), headers=assistant_headers).json()

        response = client.put(f"/contabilidad/closes/{admin_close['id']}", json={"status": "revisado"}, headers=assistant_headers)
        assert response.status_code == 403

        response = client.put(f"/contabilidad/closes/{own_close['id']}", json={"status": "revisado"}, headers=assistant_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "revisado"

        assert client.delete(f"/contabilidad/closes/{admin_close['id']}", headers=assistant_headers).status_code == 403
        assert client.delete(f"/contabilidad/closes/{admin_close['id']}", headers=admin_headers).status_code == 200


class TestDepositOrdersAPI:
    """Órdenes de depósito"""

    def test_invalid_window(self, admin_headers):
        response = client.post("/contabilidad/deposit-orders", json={
            "window_from": "2025-03-10T00:00:00Z",
            "window_to": "2025-03-01T00:00:00Z",
            "bank_name": "Popular",
            "reserve_amount": "0",
            "total_available_cash": "1000",
            "deposit_total": "1000",
        }, headers=admin_headers)
        assert response.status_code == 400

    def test_create_and_update_status(self, admin_headers):
        order = client.post("/contabilidad/deposit-orders", json={
            "window_from": "2025-03-01T00:00:00Z",
            "window_to": "2025-03-10T00:00:00Z",
            "bank_name": "Popular",
            "reserve_amount": "200",
            "total_available_cash": "5000",
            "deposit_total": "4800",
            "closes_count_by_type": {"TIENDA": 3},
        }, headers=admin_headers).json()
        assert order["status"] == "PENDING"

        response = client.put(f"/contabilidad/deposit-orders/{order['id']}", json={"status": "EXECUTED"}, headers=admin_headers)
        assert response.json()["status"] == "EXECUTED"


class TestPayablesAPI:
    """Servicios por pagar y pagos"""

    def _service(self, headers, frequency):
        response = client.post("/contabilidad/payables/services", json={
            "title": "Internet",
            "provider_kind": "COMPANY",
            "provider_name": "Claro",
            "frequency": frequency,
            "default_amount": "2500",
            "next_due_date": "2025-03-31T12:00:00Z",
        }, headers=headers)
        assert response.status_code == 201
        return response.json()

    def test_monthly_payment_moves_due_date(self, admin_headers):
        service = self._service(admin_headers, "MONTHLY")
        response = client.post(
            f"/contabilidad/payables/services/{service['id']}/payments",
            json={"amount": "2500", "paid_at": "2025-01-31T12:00:00Z"},
            headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["service"]["next_due_date"].startswith("2025-02-28")
        assert response.json()["service"]["active"] is True

    def test_one_time_payment_deactivates(self, admin_headers):
        service = self._service(admin_headers, "ONE_TIME")
        response = client.post(
            f"/contabilidad/payables/services/{service['id']}/payments",
            json={"amount": "1000"},
            headers=admin_headers
        )
        assert response.json()["service"]["active"] is False

        payments = client.get(
            "/contabilidad/payables/payments",
            params={"service_id": service["id"]},
            headers=admin_headers
        ).json()
        assert len(payments) == 1
