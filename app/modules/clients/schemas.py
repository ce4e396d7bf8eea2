from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional, List
from datetime import datetime

class ClientCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=200)
    telefono: str = Field(..., min_length=1, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    direccion: Optional[str] = Field(None, max_length=500)
    notas: Optional[str] = None

class ClientUpdate(BaseModel):
    nombre: Optional[str] = Field(None, min_length=1, max_length=200)
    telefono: Optional[str] = Field(None, min_length=1, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    direccion: Optional[str] = Field(None, max_length=500)
    notas: Optional[str] = None

class ClientOut(BaseModel):
    id: UUID
    owner_id: Optional[UUID] = None
    nombre: str
    telefono: str
    email: Optional[str] = None
    direccion: Optional[str] = None
    notas: Optional[str] = None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ClientList(BaseModel):
    items: List[ClientOut]
    total: int
    page: int
    page_size: int
    total_pages: int
