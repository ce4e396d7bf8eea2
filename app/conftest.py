"""
Fixtures compartidas: SQLite en memoria, usuarios por rol y headers con JWT.
"""
import os
import tempfile

# Debe definirse antes de importar la configuración
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="negocio-uploads-"))
os.environ.setdefault("PRODUCTS_SOURCE", "LOCAL")
os.environ["OPENAI_API_KEY"] = ""

import pytest
from uuid import uuid4

from app.database.database import Base, SessionLocal, engine
from app.modules.auth.models import User, Role
from app.modules.auth.utils import hash_password
from app.modules.auth.service import AuthService
from app.modules.clients.models import Client

import app.main  # noqa: F401  registra todos los modelos

TEST_PASSWORD = "Secreta123"


@pytest.fixture(autouse=True)
def setup_database():
    """Esquema limpio para cada test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, role: Role = Role.VENDEDOR, **overrides) -> User:
    suffix = uuid4().hex[:8]
    values = {
        "email": f"{role.value.lower()}-{suffix}@negocio.com.do",
        "password_hash": hash_password(TEST_PASSWORD),
        "nombre_completo": f"{role.value.title()} {suffix}",
        "telefono": "809-555-0000",
        "cedula": f"001-{suffix}",
        "role": role,
    }
    values.update(overrides)
    user = User(**values)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(db, user: User) -> dict:
    tokens = AuthService(db).login(user.email, TEST_PASSWORD)
    return {"Authorization": f"Bearer {tokens.access_token}"}


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, Role.ADMIN, nombre_completo="Admin Principal")


@pytest.fixture
def seller_user(db_session):
    return make_user(db_session, Role.VENDEDOR, nombre_completo="Vendedor Uno")


@pytest.fixture
def assistant_user(db_session):
    return make_user(db_session, Role.ASISTENTE, nombre_completo="Asistente Uno")


@pytest.fixture
def tech_user(db_session):
    return make_user(db_session, Role.TECNICO, nombre_completo="Tecnico Uno")


@pytest.fixture
def admin_headers(db_session, admin_user):
    return headers_for(db_session, admin_user)


@pytest.fixture
def seller_headers(db_session, seller_user):
    return headers_for(db_session, seller_user)


@pytest.fixture
def assistant_headers(db_session, assistant_user):
    return headers_for(db_session, assistant_user)


@pytest.fixture
def tech_headers(db_session, tech_user):
    return headers_for(db_session, tech_user)


@pytest.fixture
def sample_client(db_session, seller_user):
    client = Client(
        owner_id=seller_user.id,
        nombre="Cliente Prueba",
        telefono="809-555-1234",
        direccion="Calle 1, Santo Domingo"
    )
    db_session.add(client)
    db_session.commit()
    db_session.refresh(client)
    return client


@pytest.fixture
def other_seller_headers(db_session):
    return headers_for(db_session, make_user(db_session, Role.VENDEDOR, nombre_completo="Vendedor Dos"))
