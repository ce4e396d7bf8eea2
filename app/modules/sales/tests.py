"""
Tests para ventas con comisión sobre ganancia
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from app.main import app
from app.modules.sales.service import compute_sale_totals


client = TestClient(app)


def off_inventory_item(**overrides):
    item = {
        "product_name": "Cable HDMI",
        "qty": "2",
        "price_sold_unit": "500",
        "cost_unit_snapshot": "300",
    }
    item.update(overrides)
    return item


def create_sale(headers, customer_id, items=None):
    response = client.post("/sales", json={
        "customer_id": str(customer_id),
        "note": "Venta de mostrador",
        "items": items or [off_inventory_item()],
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestSaleTotals:
    """Cálculo de totales y comisión"""

    def test_commission_on_positive_profit(self):
        totals = compute_sale_totals([
            {"subtotal_sold": "1000", "subtotal_cost": "600", "profit": "400"},
            {"subtotal_sold": "250", "subtotal_cost": "100", "profit": "150"},
        ])
        assert totals["total_sold"] == Decimal("1250.00")
        assert totals["total_profit"] == Decimal("550.00")
        assert totals["commission_amount"] == Decimal("55.00")

    def test_no_commission_on_loss(self):
        totals = compute_sale_totals([
            {"subtotal_sold": "100", "subtotal_cost": "300", "profit": "-200"},
        ])
        assert totals["total_profit"] == Decimal("-200.00")
        assert totals["commission_amount"] == Decimal("0.00")


class TestSalesAPI:
    """Endpoints de ventas del vendedor"""

    def test_create_sale(self, seller_headers, sample_client):
        sale = create_sale(seller_headers, sample_client.id)

        assert sale["total_sold"] == 1000
        assert sale["total_cost"] == 600
        assert sale["total_profit"] == 400
        assert sale["commission_amount"] == 40
        assert sale["customer"]["nombre"] == sample_client.nombre
        assert sale["items"][0]["product_name_snapshot"] == "Cable HDMI"

    def test_sale_requires_items_and_customer(self, seller_headers, sample_client):
        response = client.post("/sales", json={"customer_id": str(sample_client.id), "items": []}, headers=seller_headers)
        assert response.status_code == 400

        response = client.post("/sales", json={"items": [off_inventory_item()]}, headers=seller_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Debes seleccionar un cliente"

    def test_off_inventory_item_requires_cost(self, seller_headers, sample_client):
        item = off_inventory_item()
        del item["cost_unit_snapshot"]
        response = client.post("/sales", json={
            "customer_id": str(sample_client.id),
            "items": [item]
        }, headers=seller_headers)
        assert response.status_code == 400

    def test_items_recalculate_totals(self, seller_headers, sample_client):
        sale = create_sale(seller_headers, sample_client.id)

        response = client.post(
            f"/sales/{sale['id']}/items",
            json=off_inventory_item(product_name="Adaptador", qty="1", price_sold_unit="200", cost_unit_snapshot="50"),
            headers=seller_headers
        )
        assert response.status_code == 200
        assert response.json()["total_sold"] == 1200
        assert response.json()["commission_amount"] == 55

        item_id = sale["items"][0]["id"]
        response = client.put(f"/sales/{sale['id']}/items/{item_id}", json={"qty": "1"}, headers=seller_headers)
        assert response.json()["total_sold"] == 700

        response = client.delete(f"/sales/{sale['id']}/items/{item_id}", headers=seller_headers)
        assert response.json()["total_sold"] == 200
        assert len(response.json()["items"]) == 1

    def test_other_seller_is_forbidden(self, seller_headers, other_seller_headers, sample_client):
        sale = create_sale(seller_headers, sample_client.id)

        response = client.get(f"/sales/{sale['id']}", headers=other_seller_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "No puedes ver esta venta"
        assert client.delete(f"/sales/{sale['id']}", headers=other_seller_headers).status_code == 403

    def test_soft_delete_hides_sale(self, seller_headers, sample_client):
        sale = create_sale(seller_headers, sample_client.id)

        assert client.delete(f"/sales/{sale['id']}", headers=seller_headers).json() == {"ok": True}
        assert client.get(f"/sales/{sale['id']}", headers=seller_headers).status_code == 404
        assert client.get("/sales/me", headers=seller_headers).json() == []

    def test_my_summary(self, seller_headers, sample_client):
        create_sale(seller_headers, sample_client.id)
        create_sale(seller_headers, sample_client.id)

        summary = client.get("/sales/me/summary", headers=seller_headers).json()
        assert summary["total_sales"] == 2
        assert summary["total_sold"] == 2000
        assert summary["total_commission"] == 80
        assert summary["commission_rate"] == 0.1


class TestAdminSalesAPI:
    """Vista administrativa de ventas"""

    def test_requires_admin(self, seller_headers):
        assert client.get("/admin/sales", headers=seller_headers).status_code == 403

    def test_summary_grouped_by_seller(self, admin_headers, seller_headers, seller_user, sample_client):
        create_sale(seller_headers, sample_client.id)

        response = client.get("/admin/sales/summary", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["items"][0]["user_id"] == str(seller_user.id)
        assert data["totals"]["total_sales"] == 1
        assert data["totals"]["total_profit"] == 400

        listing = client.get("/admin/sales", params={"seller_id": str(seller_user.id)}, headers=admin_headers).json()
        assert len(listing) == 1
