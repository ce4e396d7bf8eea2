"""
Tests para ubicación de técnicos
"""

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


class TestLocationsAPI:
    """Reporte y consulta de última ubicación"""

    def test_only_technicians_report(self, seller_headers):
        response = client.post("/locations", json={"latitude": 18.47, "longitude": -69.9}, headers=seller_headers)
        assert response.status_code == 403

    def test_coordinates_are_validated(self, tech_headers):
        response = client.post("/locations", json={"latitude": 120, "longitude": -69.9}, headers=tech_headers)
        assert response.status_code == 400

    def test_report_keeps_last_position(self, tech_headers, tech_user, admin_headers):
        first = client.post("/locations", json={"latitude": 18.47, "longitude": -69.9}, headers=tech_headers)
        assert first.status_code == 200

        second = client.post("/locations", json={
            "latitude": 18.5,
            "longitude": -69.95,
            "accuracy_meters": 12.5,
            "recorded_at": "2025-03-03T14:00:00Z"
        }, headers=tech_headers)
        assert second.json()["latitude"] == 18.5
        assert second.json()["user_id"] == str(tech_user.id)

        latest = client.get("/admin/locations/latest", headers=admin_headers).json()
        assert len(latest) == 1
        assert latest[0]["accuracy_meters"] == 12.5
        assert latest[0]["user"]["nombre_completo"] == tech_user.nombre_completo

    def test_latest_requires_admin(self, tech_headers):
        assert client.get("/admin/locations/latest", headers=tech_headers).status_code == 403
