import enum
from uuid import uuid4

from sqlalchemy import Column, String, Boolean, Integer, Date, Enum, JSON, Uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    ASISTENTE = "ASISTENTE"
    MARKETING = "MARKETING"
    VENDEDOR = "VENDEDOR"
    TECNICO = "TECNICO"


ALL_ROLES = [r.value for r in Role]


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    nombre_completo = Column(String(200), nullable=False)
    telefono = Column(String(40), nullable=False)
    telefono_familiar = Column(String(40), nullable=True)
    cedula = Column(String(40), unique=True, nullable=False)
    foto_cedula_url = Column(String(500), nullable=True)
    foto_licencia_url = Column(String(500), nullable=True)
    foto_personal_url = Column(String(500), nullable=True)
    edad = Column(Integer, nullable=True)
    fecha_ingreso = Column(Date, nullable=True)
    fecha_nacimiento = Column(Date, nullable=True)
    cuenta_nomina_preferencial = Column(String(80), nullable=True)
    habilidades = Column(JSON, nullable=False, default=list)
    tiene_hijos = Column(Boolean, default=False, nullable=False)
    esta_casado = Column(Boolean, default=False, nullable=False)
    casa_propia = Column(Boolean, default=False, nullable=False)
    vehiculo = Column(Boolean, default=False, nullable=False)
    licencia_conducir = Column(Boolean, default=False, nullable=False)
    role = Column(Enum(Role, name="user_role"), nullable=False, default=Role.VENDEDOR)
    blocked = Column(Boolean, default=False, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
