"""
Tests para clientes
"""

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


def create_client(headers, **overrides):
    payload = {"nombre": "Ferretería Central", "telefono": "809-555-3030", "email": "ventas@central.do"}
    payload.update(overrides)
    response = client.post("/clients", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestClientsAPI:
    """CRUD con soft delete y búsqueda"""

    def test_create_sets_owner(self, seller_headers, seller_user):
        data = create_client(seller_headers)
        assert data["owner_id"] == str(seller_user.id)
        assert data["is_deleted"] is False

    def test_technicians_are_rejected(self, tech_headers):
        assert client.get("/clients", headers=tech_headers).status_code == 403

    def test_search_and_pagination(self, seller_headers):
        create_client(seller_headers)
        create_client(seller_headers, nombre="Colmado Don Luis", telefono="829-555-7070", email=None)

        found = client.get("/clients", params={"search": "colmado"}, headers=seller_headers).json()
        assert found["total"] == 1
        assert found["items"][0]["nombre"] == "Colmado Don Luis"

        page = client.get("/clients", params={"page_size": 1, "page": 2}, headers=seller_headers).json()
        assert page["total"] == 2
        assert page["total_pages"] == 2
        assert len(page["items"]) == 1

    def test_update(self, seller_headers):
        created = create_client(seller_headers)
        response = client.patch(
            f"/clients/{created['id']}",
            json={"nombre": "  Ferretería Norte ", "direccion": "Av. Duarte"},
            headers=seller_headers
        )
        assert response.json()["nombre"] == "Ferretería Norte"
        assert response.json()["direccion"] == "Av. Duarte"

    def test_soft_delete(self, seller_headers):
        created = create_client(seller_headers)

        assert client.delete(f"/clients/{created['id']}", headers=seller_headers).json() == {"ok": True}
        assert client.get(f"/clients/{created['id']}", headers=seller_headers).status_code == 404
        assert client.get("/clients", headers=seller_headers).json()["total"] == 0

        deleted = client.get("/clients", params={"only_deleted": True}, headers=seller_headers).json()
        assert deleted["items"][0]["id"] == created["id"]
