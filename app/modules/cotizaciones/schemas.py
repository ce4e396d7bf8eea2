from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

class CotizacionItemCreate(BaseModel):
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    product_image_snapshot: Optional[str] = None
    qty: Decimal
    unit_price: Decimal

class CotizacionCreate(BaseModel):
    customer_id: Optional[UUID] = None
    customer_name: str
    customer_phone: str
    note: Optional[str] = Field(None, max_length=2000)
    include_itbis: bool = False
    itbis_rate: Optional[float] = None
    items: List[CotizacionItemCreate] = []

class CotizacionUpdate(BaseModel):
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    note: Optional[str] = Field(None, max_length=2000)
    include_itbis: Optional[bool] = None
    itbis_rate: Optional[float] = None
    items: Optional[List[CotizacionItemCreate]] = None

class CotizacionItemOut(BaseModel):
    id: UUID
    product_id: Optional[str] = None
    product_name_snapshot: str
    product_image_snapshot: Optional[str] = None
    qty: float
    unit_price: float
    line_total: float
    created_at: datetime

    class Config:
        from_attributes = True

class CotizacionOut(BaseModel):
    id: UUID
    created_by_user_id: UUID
    customer_id: Optional[UUID] = None
    customer_name: str
    customer_phone: str
    note: Optional[str] = None
    include_itbis: bool
    itbis_rate: float
    subtotal: float
    itbis_amount: float
    total: float
    items: List[CotizacionItemOut] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class CotizacionList(BaseModel):
    items: List[CotizacionOut]
