"""
Schemas para reportes de ubicación.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.modules.auth.models import Role


class LocationReport(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy_meters: Optional[float] = Field(None, ge=0)
    altitude_meters: Optional[float] = None
    heading_degrees: Optional[float] = Field(None, ge=0, le=360)
    speed_mps: Optional[float] = Field(None, ge=0)
    recorded_at: Optional[datetime] = None


class LocationOut(BaseModel):
    user_id: UUID
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None
    altitude_meters: Optional[float] = None
    heading_degrees: Optional[float] = None
    speed_mps: Optional[float] = None
    recorded_at: Optional[datetime] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class LocationUserOut(BaseModel):
    id: UUID
    nombre_completo: str
    email: str
    role: Role
    blocked: bool

    class Config:
        from_attributes = True


class LatestLocationOut(LocationOut):
    user: LocationUserOut
