"""
Tests para la configuración general
"""

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


class TestSettingsAPI:
    """Lectura y actualización de la fila global"""

    def test_defaults_created_on_read(self, seller_headers):
        response = client.get("/settings", headers=seller_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["company_name"] == ""
        assert data["has_openai_api_key"] is False
        assert data["products_source"] == "LOCAL"
        assert data["products_read_only"] is False

    def test_only_admin_updates(self, seller_headers):
        response = client.patch("/settings", json={"company_name": "Mi Negocio"}, headers=seller_headers)
        assert response.status_code == 403

    def test_api_key_visible_only_to_admin(self, admin_headers, seller_headers):
        response = client.patch("/settings", json={
            "company_name": "  Mi Negocio SRL ",
            "openai_api_key": "sk-prueba",
            "openai_model": "  "
        }, headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["company_name"] == "Mi Negocio SRL"
        assert data["openai_api_key"] == "sk-prueba"
        assert data["openai_model"]

        seller_view = client.get("/settings", headers=seller_headers).json()
        assert seller_view["has_openai_api_key"] is True
        assert seller_view["openai_api_key"] is None
