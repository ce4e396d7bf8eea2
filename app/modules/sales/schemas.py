from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

class SaleItemCreate(BaseModel):
    """Item de inventario (product_id) o fuera de inventario (product_name + costo)."""
    product_id: Optional[UUID] = None
    product_name: Optional[str] = None
    qty: Decimal
    price_sold_unit: Decimal
    cost_unit_snapshot: Optional[Decimal] = None

class SaleItemUpdate(BaseModel):
    qty: Optional[Decimal] = None
    price_sold_unit: Optional[Decimal] = None

class SaleCreate(BaseModel):
    customer_id: Optional[UUID] = None
    note: Optional[str] = None
    items: List[SaleItemCreate] = []

class SaleUpdate(BaseModel):
    customer_id: Optional[UUID] = None
    note: Optional[str] = None

class SaleCustomerOut(BaseModel):
    id: UUID
    nombre: str
    telefono: str

    class Config:
        from_attributes = True

class SaleUserOut(BaseModel):
    id: UUID
    nombre_completo: str
    email: str

    class Config:
        from_attributes = True

class SaleItemOut(BaseModel):
    id: UUID
    product_id: Optional[UUID] = None
    product_name_snapshot: str
    product_image_snapshot: Optional[str] = None
    qty: float
    price_sold_unit: float
    cost_unit_snapshot: float
    subtotal_sold: float
    subtotal_cost: float
    profit: float

    class Config:
        from_attributes = True

class SaleOut(BaseModel):
    id: UUID
    user_id: UUID
    customer_id: Optional[UUID] = None
    sale_date: datetime
    note: Optional[str] = None
    total_sold: float
    total_cost: float
    total_profit: float
    commission_rate: float
    commission_amount: float
    customer: Optional[SaleCustomerOut] = None
    user: Optional[SaleUserOut] = None
    items: List[SaleItemOut] = []

    class Config:
        from_attributes = True

class SalesSummary(BaseModel):
    total_sales: int
    total_sold: float
    total_cost: float
    total_profit: float
    total_commission: float
    commission_rate: float

class UserSalesSummary(BaseModel):
    user_id: UUID
    user_name: str
    user_email: str
    total_sales: int
    total_sold: float
    total_profit: float
    total_commission: float

class SummaryTotals(BaseModel):
    total_sales: int
    total_sold: float
    total_profit: float
    total_commission: float

class AdminSalesSummary(BaseModel):
    items: List[UserSalesSummary]
    totals: SummaryTotals
    commission_rate: float
