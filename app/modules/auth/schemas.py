from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.modules.auth.models import Role


class LoginRequest(BaseModel):
    """Se acepta email o identifier (email o cédula)."""
    email: Optional[str] = None
    identifier: Optional[str] = None
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserOut(BaseModel):
    id: UUID
    email: str
    nombre_completo: str
    telefono: str
    telefono_familiar: Optional[str] = None
    cedula: str
    foto_cedula_url: Optional[str] = None
    foto_licencia_url: Optional[str] = None
    foto_personal_url: Optional[str] = None
    edad: Optional[int] = None
    fecha_ingreso: Optional[date] = None
    fecha_nacimiento: Optional[date] = None
    cuenta_nomina_preferencial: Optional[str] = None
    habilidades: List[str] = []
    tiene_hijos: bool = False
    esta_casado: bool = False
    casa_propia: bool = False
    vehiculo: bool = False
    licencia_conducir: bool = False
    role: Role
    blocked: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
