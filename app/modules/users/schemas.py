from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from uuid import UUID
from datetime import date

from app.modules.auth.models import Role


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    nombre_completo: str = Field(..., min_length=1, max_length=200)
    telefono: str = Field(..., min_length=1, max_length=40)
    telefono_familiar: Optional[str] = Field(None, max_length=40)
    cedula: str = Field(..., min_length=1, max_length=40)
    foto_cedula_url: Optional[str] = None
    foto_licencia_url: Optional[str] = None
    foto_personal_url: Optional[str] = None
    edad: Optional[int] = Field(None, ge=0, le=120)
    fecha_ingreso: Optional[date] = None
    fecha_nacimiento: Optional[date] = None
    cuenta_nomina_preferencial: Optional[str] = Field(None, max_length=80)
    habilidades: List[str] = []
    tiene_hijos: bool = False
    esta_casado: bool = False
    casa_propia: bool = False
    vehiculo: bool = False
    licencia_conducir: bool = False
    role: Role = Role.VENDEDOR


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    nombre_completo: Optional[str] = Field(None, min_length=1, max_length=200)
    telefono: Optional[str] = Field(None, min_length=1, max_length=40)
    telefono_familiar: Optional[str] = Field(None, max_length=40)
    cedula: Optional[str] = Field(None, min_length=1, max_length=40)
    foto_cedula_url: Optional[str] = None
    foto_licencia_url: Optional[str] = None
    foto_personal_url: Optional[str] = None
    edad: Optional[int] = Field(None, ge=0, le=120)
    fecha_ingreso: Optional[date] = None
    fecha_nacimiento: Optional[date] = None
    cuenta_nomina_preferencial: Optional[str] = Field(None, max_length=80)
    habilidades: Optional[List[str]] = None
    tiene_hijos: Optional[bool] = None
    esta_casado: Optional[bool] = None
    casa_propia: Optional[bool] = None
    vehiculo: Optional[bool] = None
    licencia_conducir: Optional[bool] = None
    role: Optional[Role] = None
    blocked: Optional[bool] = None


class SelfUpdate(BaseModel):
    """Campos que un usuario puede cambiar de su propio perfil."""
    email: Optional[EmailStr] = None
    nombre_completo: Optional[str] = Field(None, min_length=1, max_length=200)
    telefono: Optional[str] = Field(None, min_length=1, max_length=40)
    password: Optional[str] = Field(None, min_length=8)


class BlockRequest(BaseModel):
    blocked: Optional[bool] = None


class BirthdayGreeting(BaseModel):
    user_id: UUID
    nombre_completo: str
    fecha_nacimiento: Optional[date] = None
    is_birthday_today: bool
    days_until_birthday: Optional[int] = None
    message: str
