from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

class ProductCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=200)
    categoria: Optional[str] = Field(None, max_length=120)
    precio: Decimal = Field(..., ge=0)
    costo: Decimal = Field(Decimal("0"), ge=0)
    imagen: Optional[str] = None

class ProductUpdate(BaseModel):
    nombre: Optional[str] = Field(None, min_length=1, max_length=200)
    categoria: Optional[str] = Field(None, max_length=120)
    precio: Optional[Decimal] = Field(None, ge=0)
    costo: Optional[Decimal] = Field(None, ge=0)
    imagen: Optional[str] = None
