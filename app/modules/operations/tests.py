"""
Tests para servicios técnicos en campo.

Cubren:
- Máquina de estados y cambios forzados
- Agenda con conflictos de técnicos
- Alcance por rol
- Garantías y soft delete
"""

from fastapi.testclient import TestClient

from app.main import app
from app.modules.operations.models import ServiceStatus
from app.modules.operations.service import is_valid_transition, DEFAULT_STEPS


client = TestClient(app)


def create_service(headers, customer_id, **overrides):
    payload = {
        "customer_id": str(customer_id),
        "service_type": "installation",
        "category": "Cámaras",
        "title": "Instalación de 4 cámaras",
        "description": "Local comercial",
        "tags": "cctv, urgente",
    }
    payload.update(overrides)
    response = client.post("/services", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def set_status(headers, service_id, new_status, **extra):
    return client.patch(f"/services/{service_id}/status", json={"status": new_status, **extra}, headers=headers)


class TestTransitions:
    """Transiciones permitidas entre estados"""

    def test_same_status_is_valid(self):
        for value in ServiceStatus:
            assert is_valid_transition(value, value)

    def test_allowed_and_rejected(self):
        assert is_valid_transition(ServiceStatus.RESERVED, ServiceStatus.SURVEY)
        assert is_valid_transition(ServiceStatus.WARRANTY, ServiceStatus.IN_PROGRESS)
        assert not is_valid_transition(ServiceStatus.RESERVED, ServiceStatus.COMPLETED)
        assert not is_valid_transition(ServiceStatus.CLOSED, ServiceStatus.IN_PROGRESS)
        assert not is_valid_transition(ServiceStatus.CANCELLED, ServiceStatus.RESERVED)


class TestServiceLifecycle:
    """Creación, estados y bitácora"""

    def test_create_service_defaults(self, seller_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)

        assert service["status"] == "reserved"
        assert service["priority"] == 1
        assert service["address_snapshot"] == sample_client.direccion
        assert service["tags"] == ["cctv", "urgente"]
        assert [s["step_key"] for s in service["steps"]] == [key for key, _ in DEFAULT_STEPS]
        assert service["updates"][0]["message"] == "Reserva creada"

    def test_maintenance_default_priority(self, seller_headers, sample_client):
        service = create_service(seller_headers, sample_client.id, service_type="maintenance")
        assert service["priority"] == 2

    def test_warranty_requires_parent(self, seller_headers, sample_client):
        response = client.post("/services", json={
            "customer_id": str(sample_client.id),
            "service_type": "warranty",
            "category": "Cámaras",
            "title": "Garantía",
            "description": "Falla",
        }, headers=seller_headers)
        assert response.status_code == 400

    def test_invalid_transition(self, seller_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)
        response = set_status(seller_headers, service["id"], "completed")
        assert response.status_code == 400

    def test_force_only_for_supervisors(self, seller_headers, admin_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)

        assert set_status(seller_headers, service["id"], "completed", force=True).status_code == 400

        response = set_status(admin_headers, service["id"], "completed", force=True)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["completed_at"] is not None
        assert data["updates"][0]["message"] == "Cambio forzado por administrador"

    def test_cannot_complete_without_schedule(self, seller_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)
        # reserved -> survey -> scheduled por estado, sin agenda
        assert set_status(seller_headers, service["id"], "survey").status_code == 200
        assert set_status(seller_headers, service["id"], "scheduled").status_code == 200
        assert set_status(seller_headers, service["id"], "in_progress").status_code == 200

        response = set_status(seller_headers, service["id"], "completed")
        assert response.status_code == 400

    def test_toggle_step(self, seller_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)
        step = service["steps"][0]

        response = client.post(f"/services/{service['id']}/update", json={
            "type": "step_update",
            "step_id": step["id"],
            "step_done": True
        }, headers=seller_headers)
        assert response.status_code == 200
        assert response.json()["steps"][0]["is_done"] is True

    def test_internal_note(self, seller_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)
        response = client.post(f"/services/{service['id']}/update", json={"type": "note"}, headers=seller_headers)
        assert response.json() == {"ok": True}


class TestScheduling:
    """Agenda y conflictos"""

    def _assign(self, headers, service_id, tech_id):
        response = client.post(f"/services/{service_id}/assign", json={
            "assignments": [{"user_id": str(tech_id), "role": "lead"}]
        }, headers=headers)
        assert response.status_code == 200
        return response.json()

    def _schedule(self, headers, service_id, start, end):
        return client.patch(f"/services/{service_id}/schedule", json={
            "scheduled_start": start,
            "scheduled_end": end
        }, headers=headers)

    def test_invalid_range(self, seller_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)
        response = self._schedule(seller_headers, service["id"], "2025-03-03T14:00:00Z", "2025-03-03T13:00:00Z")
        assert response.status_code == 400

    def test_schedule_moves_reserved_to_scheduled(self, seller_headers, sample_client, tech_user):
        service = create_service(seller_headers, sample_client.id)
        self._assign(seller_headers, service["id"], tech_user.id)

        response = self._schedule(seller_headers, service["id"], "2025-03-03T13:00:00Z", "2025-03-03T16:00:00Z")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "scheduled"
        assert data["conflicts"] == []

    def test_installation_has_priority(self, seller_headers, sample_client, tech_user):
        install = create_service(seller_headers, sample_client.id)
        self._assign(seller_headers, install["id"], tech_user.id)
        self._schedule(seller_headers, install["id"], "2025-03-03T13:00:00Z", "2025-03-03T16:00:00Z")

        maintenance = create_service(seller_headers, sample_client.id, service_type="maintenance")
        self._assign(seller_headers, maintenance["id"], tech_user.id)
        response = self._schedule(seller_headers, maintenance["id"], "2025-03-03T14:00:00Z", "2025-03-03T15:00:00Z")
        assert response.status_code == 400

        second_install = create_service(seller_headers, sample_client.id)
        self._assign(seller_headers, second_install["id"], tech_user.id)
        response = self._schedule(seller_headers, second_install["id"], "2025-03-03T14:00:00Z", "2025-03-03T15:00:00Z")
        assert response.status_code == 200
        assert [c["id"] for c in response.json()["conflicts"]] == [install["id"]]

    def test_assign_rejects_sellers(self, seller_headers, sample_client, seller_user):
        service = create_service(seller_headers, sample_client.id)
        response = client.post(f"/services/{service['id']}/assign", json={
            "assignments": [{"user_id": str(seller_user.id), "role": "lead"}]
        }, headers=seller_headers)
        assert response.status_code == 400


class TestScopeAndWarranty:
    """Visibilidad por rol, garantías y eliminación"""

    def test_technician_sees_only_assigned(self, seller_headers, tech_headers, sample_client, tech_user):
        service = create_service(seller_headers, sample_client.id)

        assert client.get(f"/services/{service['id']}", headers=tech_headers).status_code == 404
        assert client.get("/services", headers=tech_headers).json()["total"] == 0

        client.post(f"/services/{service['id']}/assign", json={
            "assignments": [{"user_id": str(tech_user.id), "role": "lead"}]
        }, headers=seller_headers)

        listing = client.get("/services", headers=tech_headers).json()
        assert listing["total"] == 1
        assert listing["total_pages"] == 1

    def test_seller_cannot_touch_others(self, admin_headers, other_seller_headers, sample_client):
        service = create_service(admin_headers, sample_client.id)

        response = set_status(other_seller_headers, service["id"], "survey")
        assert response.status_code == 403

    def test_warranty_from_completed(self, admin_headers, sample_client):
        parent = create_service(admin_headers, sample_client.id)

        response = client.post(f"/services/{parent['id']}/warranty", json={}, headers=admin_headers)
        assert response.status_code == 400

        set_status(admin_headers, parent["id"], "completed", force=True)
        response = client.post(f"/services/{parent['id']}/warranty", json={}, headers=admin_headers)
        assert response.status_code == 201
        warranty = response.json()
        assert warranty["status"] == "warranty"
        assert warranty["priority"] == 1
        assert warranty["title"] == f"Garantía: {parent['title']}"
        assert warranty["warranty_parent_service_id"] == parent["id"]

    def test_soft_delete_admin_only(self, seller_headers, admin_headers, sample_client):
        service = create_service(seller_headers, sample_client.id)

        assert client.delete(f"/services/{service['id']}", headers=seller_headers).status_code == 403
        assert client.delete(f"/services/{service['id']}", headers=admin_headers).json() == {"ok": True}
        assert client.get(f"/services/{service['id']}", headers=admin_headers).status_code == 404

        listing = client.get("/services", params={"include_deleted": True}, headers=admin_headers).json()
        assert listing["items"][0]["is_deleted"] is True

    def test_dashboard(self, admin_headers, sample_client):
        create_service(admin_headers, sample_client.id)
        response = client.get("/dashboard/operations", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["active_by_status"] == [{"status": "reserved", "count": 1}]
        assert data["warranties_open"] == 0

    def test_technicians_list(self, admin_headers, tech_user, seller_user):
        names = [t["nombre_completo"] for t in client.get("/technicians", headers=admin_headers).json()]
        assert tech_user.nombre_completo in names
        assert seller_user.nombre_completo not in names
