"""
Tests para el catálogo de productos
"""

from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app
from app.modules.products.service import normalize_image_path


client = TestClient(app)


def create_product(headers, **overrides):
    payload = {"nombre": "Cámara domo 2MP", "categoria": " CCTV ", "precio": "1500", "costo": "900"}
    payload.update(overrides)
    response = client.post("/products", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestImagePaths:
    """Normalización de rutas de imagen"""

    def test_normalize(self):
        assert normalize_image_path("https://api.negocio.do/uploads/a.png") == "/uploads/a.png"
        assert normalize_image_path("uploads/b.png") == "/uploads/b.png"
        assert normalize_image_path("https://cdn.negocio.do/c.png") is None
        assert normalize_image_path("  ") is None


class TestProductsAPI:
    """Catálogo local"""

    def test_create_and_read(self, assistant_headers):
        product = create_product(assistant_headers, imagen="http://otro-host/uploads/foto.png")
        assert product["categoria"] == "CCTV"
        assert product["imagen"] == "/uploads/foto.png"
        assert product["foto_url"].endswith("/uploads/foto.png")

        fetched = client.get(f"/products/{product['id']}", headers=assistant_headers).json()
        assert fetched["costo"] == 900

    def test_sellers_do_not_see_cost(self, assistant_headers, seller_headers):
        product = create_product(assistant_headers)

        listing = client.get("/products", headers=seller_headers).json()
        assert listing[0]["id"] == product["id"]
        assert "costo" not in listing[0]
        assert client.post("/products", json={"nombre": "X", "precio": "1"}, headers=seller_headers).status_code == 403

    def test_update_and_delete(self, admin_headers):
        product = create_product(admin_headers)

        response = client.patch(f"/products/{product['id']}", json={"precio": "1750"}, headers=admin_headers)
        assert response.json()["precio"] == 1750

        assert client.delete(f"/products/{product['id']}", headers=admin_headers).json() == {"ok": True}
        assert client.get(f"/products/{product['id']}", headers=admin_headers).status_code == 404

    def test_unknown_id(self, admin_headers):
        assert client.get("/products/no-existe", headers=admin_headers).status_code == 404

    def test_remote_catalog_is_read_only(self, monkeypatch, admin_headers):
        monkeypatch.setattr(settings, "PRODUCTS_SOURCE", "FULLPOS")
        response = client.post("/products", json={"nombre": "X", "precio": "1"}, headers=admin_headers)
        assert response.status_code == 409
