from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional

from app.modules.auth.models import Role
from app.modules.punch.models import PunchType

class PunchCreate(BaseModel):
    type: PunchType

class PunchUserOut(BaseModel):
    id: UUID
    email: str
    nombre_completo: str
    role: Role

    class Config:
        from_attributes = True

class PunchOut(BaseModel):
    id: UUID
    user_id: UUID
    type: PunchType
    timestamp: datetime

    class Config:
        from_attributes = True

class AdminPunchOut(PunchOut):
    user: Optional[PunchUserOut] = None
