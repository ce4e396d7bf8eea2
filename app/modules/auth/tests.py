"""
Tests para login, refresh y usuario actual
"""

from fastapi.testclient import TestClient

from app.main import app
from app.modules.auth.utils import create_access_token


client = TestClient(app)

PASSWORD = "Secreta123"


class TestLogin:
    """Login por email o cédula"""

    def test_login_with_email_ignores_case(self, seller_user):
        response = client.post("/auth/login", json={"email": seller_user.email.upper(), "password": PASSWORD})
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["id"] == str(seller_user.id)
        assert "password_hash" not in data["user"]

    def test_login_with_cedula(self, seller_user):
        response = client.post("/auth/login", json={"identifier": seller_user.cedula, "password": PASSWORD})
        assert response.status_code == 200

    def test_wrong_password(self, seller_user):
        response = client.post("/auth/login", json={"email": seller_user.email, "password": "otra"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Credenciales inválidas"

    def test_missing_identifier(self):
        response = client.post("/auth/login", json={"password": PASSWORD})
        assert response.status_code == 400

    def test_blocked_user(self, db_session, seller_user):
        seller_user.blocked = True
        db_session.commit()

        response = client.post("/auth/login", json={"email": seller_user.email, "password": PASSWORD})
        assert response.status_code == 403
        assert response.json()["detail"] == "Usuario bloqueado"


class TestTokens:
    """Refresh y acceso con token"""

    def _login(self, user):
        return client.post("/auth/login", json={"email": user.email, "password": PASSWORD}).json()

    def test_refresh(self, seller_user):
        tokens = self._login(seller_user)
        response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["user"]["email"] == seller_user.email

    def test_access_token_is_not_refresh(self, seller_user):
        tokens = self._login(seller_user)
        response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401

    def test_me(self, seller_headers, seller_user):
        response = client.get("/auth/me", headers=seller_headers)
        assert response.status_code == 200
        assert response.json()["role"] == "VENDEDOR"

    def test_blocked_user_token_rejected(self, db_session, seller_headers, seller_user):
        seller_user.blocked = True
        db_session.commit()
        assert client.get("/auth/me", headers=seller_headers).status_code == 401

    def test_invalid_token(self):
        response = client.get("/auth/me", headers={"Authorization": "Bearer no-es-un-token"})
        assert response.status_code == 401

    def test_role_guard_message(self, seller_headers):
        response = client.get("/users", headers=seller_headers)
        assert response.status_code == 403

    def test_token_for_unknown_user(self):
        token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000"})
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
