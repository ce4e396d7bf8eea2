"""
Tests para gestión de usuarios
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi.testclient import TestClient

from app.main import app
from app.modules.sales.models import Sale
from app.modules.users.service import next_birthday, build_birthday_greeting


client = TestClient(app)


def user_payload(**overrides):
    payload = {
        "email": "Nuevo.Tecnico@Negocio.com.do",
        "password": "ClaveSegura1",
        "nombre_completo": "Pedro Martínez",
        "telefono": "829-555-0101",
        "cedula": "402-1234567-8",
        "role": "TECNICO",
        "habilidades": ["cctv", "redes"],
    }
    payload.update(overrides)
    return payload


class TestBirthdays:
    """Cálculo del próximo cumpleaños"""

    def test_today_and_next_year(self):
        assert next_birthday(date(1990, 5, 10), date(2025, 5, 10)) == date(2025, 5, 10)
        assert next_birthday(date(1990, 5, 10), date(2025, 5, 11)) == date(2026, 5, 10)

    def test_leap_day(self):
        assert next_birthday(date(2000, 2, 29), date(2025, 1, 1)) == date(2025, 2, 28)

    def test_greeting_without_birthdate(self, seller_user):
        greeting = build_birthday_greeting(seller_user, date(2025, 5, 10))
        assert greeting.days_until_birthday is None
        assert greeting.is_birthday_today is False


class TestUsersAPI:
    """Endpoints de usuarios"""

    def test_list_requires_admin(self, seller_headers, admin_headers, seller_user):
        assert client.get("/users", headers=seller_headers).status_code == 403

        response = client.get("/users", headers=admin_headers)
        assert response.status_code == 200
        assert str(seller_user.id) in [u["id"] for u in response.json()]

    def test_create_normalizes_email(self, admin_headers):
        response = client.post("/users", json=user_payload(), headers=admin_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "nuevo.tecnico@negocio.com.do"
        assert data["role"] == "TECNICO"
        assert data["habilidades"] == ["cctv", "redes"]

        login = client.post("/auth/login", json={"email": data["email"], "password": "ClaveSegura1"})
        assert login.status_code == 200

    def test_duplicate_email(self, admin_headers, seller_user):
        response = client.post("/users", json=user_payload(email=seller_user.email), headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "El email ya está en uso"

    def test_duplicate_cedula(self, admin_headers, seller_user):
        response = client.post("/users", json=user_payload(cedula=seller_user.cedula), headers=admin_headers)
        assert response.status_code == 400

    def test_update_me(self, seller_headers):
        response = client.patch("/users/me", json={"telefono": "849-555-2222"}, headers=seller_headers)
        assert response.status_code == 200
        assert response.json()["telefono"] == "849-555-2222"
        assert response.json()["role"] == "VENDEDOR"

    def test_block_toggles(self, admin_headers, seller_user):
        response = client.patch(f"/users/{seller_user.id}/block", headers=admin_headers)
        assert response.json()["blocked"] is True

        response = client.patch(f"/users/{seller_user.id}/block", json={"blocked": False}, headers=admin_headers)
        assert response.json()["blocked"] is False

    def test_birthday_greeting(self, admin_headers, seller_user):
        response = client.get(f"/users/{seller_user.id}/birthday-greeting", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["fecha_nacimiento"] is None

    def test_delete_and_not_found(self, admin_headers, tech_user):
        assert client.delete(f"/users/{tech_user.id}", headers=admin_headers).json() == {"ok": True}
        assert client.get(f"/users/{tech_user.id}", headers=admin_headers).status_code == 404

    def test_upload_rejects_unknown_type(self, seller_headers):
        response = client.post(
            "/users/upload",
            files={"file": ("notas.exe", b"MZ", "application/octet-stream")},
            headers=seller_headers
        )
        assert response.status_code == 400

    def test_upload_image(self, seller_headers):
        response = client.post(
            "/users/upload",
            files={"file": ("cedula.png", b"\x89PNG\r\n\x1a\n", "image/png")},
            headers=seller_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["filename"].endswith(".png")
        assert data["url"].endswith(data["path"])

    def test_upload_extension_follows_content_type(self, seller_headers):
        response = client.post(
            "/users/upload",
            files={"file": ("pagina.html", b"<script>alert(1)</script>", "image/png")},
            headers=seller_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["filename"].endswith(".png")

        served = client.get(data["path"])
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"

    def test_upload_fallback_requires_known_extension(self, seller_headers):
        response = client.post(
            "/users/upload",
            files={"file": ("foto.JPG", b"\xff\xd8\xff", "application/octet-stream")},
            headers=seller_headers
        )
        assert response.status_code == 200
        assert response.json()["filename"].endswith(".jpg")

    def test_delete_user_with_sales_conflicts(self, db_session, admin_headers, seller_user):
        db_session.add(Sale(
            user_id=seller_user.id,
            sale_date=datetime(2025, 3, 5, 15, 0, tzinfo=timezone.utc),
            total_sold=Decimal("1000"),
            total_cost=Decimal("600"),
            total_profit=Decimal("400"),
            commission_amount=Decimal("40")
        ))
        db_session.commit()

        response = client.delete(f"/users/{seller_user.id}", headers=admin_headers)
        assert response.status_code == 409
        assert client.get(f"/users/{seller_user.id}", headers=admin_headers).status_code == 200
