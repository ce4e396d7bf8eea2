"""
Tests para cotizaciones con ITBIS opcional
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from app.main import app
from app.modules.cotizaciones.service import clamp_itbis_rate, compute_quote_totals


client = TestClient(app)


def quote_payload(**overrides):
    payload = {
        "customer_name": "Juan Pérez",
        "customer_phone": "809-555-9999",
        "include_itbis": True,
        "items": [
            {"product_name": "Cámara domo", "qty": "2", "unit_price": "1500"},
            {"product_name": "DVR 8 canales", "qty": "1", "unit_price": "4000"},
        ],
    }
    payload.update(overrides)
    return payload


class TestQuoteTotals:
    """ITBIS y totales"""

    def test_rate_defaults_and_clamps(self):
        assert clamp_itbis_rate(None) == Decimal("0.18")
        assert clamp_itbis_rate(1.5) == Decimal("1")
        assert clamp_itbis_rate(-0.2) == Decimal("0")

    def test_itbis_only_when_included(self):
        lines = [Decimal("3000.00"), Decimal("4000.00")]

        with_itbis = compute_quote_totals(lines, True, Decimal("0.18"))
        assert with_itbis["subtotal"] == Decimal("7000.00")
        assert with_itbis["itbis_amount"] == Decimal("1260.00")
        assert with_itbis["total"] == Decimal("8260.00")

        without = compute_quote_totals(lines, False, Decimal("0.18"))
        assert without["itbis_amount"] == Decimal("0.00")
        assert without["total"] == Decimal("7000.00")


class TestCotizacionesAPI:
    """Endpoints de cotizaciones"""

    def test_create_quote(self, seller_headers):
        response = client.post("/cotizaciones", json=quote_payload(), headers=seller_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["subtotal"] == 7000
        assert data["itbis_amount"] == 1260
        assert data["total"] == 8260
        assert sorted(i["line_total"] for i in data["items"]) == [3000, 4000]

    def test_empty_ticket_rejected(self, seller_headers):
        response = client.post("/cotizaciones", json=quote_payload(items=[]), headers=seller_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Agrega al menos un producto al ticket"

    def test_technician_reads_but_cannot_create(self, tech_headers):
        assert client.get("/cotizaciones", headers=tech_headers).status_code == 200
        assert client.post("/cotizaciones", json=quote_payload(), headers=tech_headers).status_code == 403

    def test_update_recalculates(self, seller_headers):
        quote = client.post("/cotizaciones", json=quote_payload(), headers=seller_headers).json()

        response = client.patch(f"/cotizaciones/{quote['id']}", json={"include_itbis": False}, headers=seller_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 7000

        response = client.patch(f"/cotizaciones/{quote['id']}", json={
            "items": [{"product_name": "Cámara bala", "qty": "4", "unit_price": "1000"}]
        }, headers=seller_headers)
        assert response.json()["subtotal"] == 4000
        assert len(response.json()["items"]) == 1

    def test_list_scoped_to_creator(self, seller_headers, other_seller_headers, admin_headers):
        quote = client.post("/cotizaciones", json=quote_payload(), headers=seller_headers).json()

        assert client.get("/cotizaciones", headers=other_seller_headers).json()["items"] == []
        assert client.get(f"/cotizaciones/{quote['id']}", headers=other_seller_headers).status_code == 403

        listing = client.get(
            "/cotizaciones",
            params={"customer_phone": "809-555-9999"},
            headers=admin_headers
        ).json()
        assert len(listing["items"]) == 1

    def test_delete(self, seller_headers):
        quote = client.post("/cotizaciones", json=quote_payload(), headers=seller_headers).json()
        assert client.delete(f"/cotizaciones/{quote['id']}", headers=seller_headers).json() == {"ok": True}
        assert client.get(f"/cotizaciones/{quote['id']}", headers=seller_headers).status_code == 404
