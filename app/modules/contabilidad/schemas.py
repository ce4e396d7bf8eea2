from pydantic import BaseModel, Field
from uuid import UUID
from typing import Dict, List, Optional
from decimal import Decimal
from datetime import datetime

from app.modules.contabilidad.models import (
    CloseType, DepositOrderStatus, FiscalInvoiceKind, PayableProviderKind, PayableFrequency
)

# Closes
class CloseCreate(BaseModel):
    type: CloseType
    date: Optional[datetime] = None
    status: str = Field(..., min_length=1, max_length=40)
    cash: Decimal = Field(..., ge=0)
    transfer: Decimal = Field(..., ge=0)
    transfer_bank: Optional[str] = None
    card: Decimal = Field(..., ge=0)
    expenses: Decimal = Field(..., ge=0)
    cash_delivered: Decimal = Field(..., ge=0)

class CloseUpdate(BaseModel):
    status: Optional[str] = Field(None, min_length=1, max_length=40)
    cash: Optional[Decimal] = Field(None, ge=0)
    transfer: Optional[Decimal] = Field(None, ge=0)
    transfer_bank: Optional[str] = None
    card: Optional[Decimal] = Field(None, ge=0)
    expenses: Optional[Decimal] = Field(None, ge=0)
    cash_delivered: Optional[Decimal] = Field(None, ge=0)

class CloseOut(BaseModel):
    id: UUID
    type: CloseType
    date: datetime
    status: str
    cash: float
    transfer: float
    transfer_bank: Optional[str] = None
    card: float
    expenses: float
    cash_delivered: float
    created_by_id: Optional[UUID] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Deposit orders
class DepositOrderCreate(BaseModel):
    window_from: datetime
    window_to: datetime
    bank_name: str = Field(..., min_length=1, max_length=100)
    reserve_amount: Decimal = Field(..., ge=0)
    total_available_cash: Decimal = Field(..., ge=0)
    deposit_total: Decimal = Field(..., ge=0)
    closes_count_by_type: Dict[str, int] = {}
    deposit_by_type: Dict[str, float] = {}
    account_by_type: Dict[str, str] = {}

class DepositOrderUpdate(BaseModel):
    status: Optional[DepositOrderStatus] = None
    bank_name: Optional[str] = Field(None, min_length=1, max_length=100)

class DepositOrderOut(BaseModel):
    id: UUID
    window_from: datetime
    window_to: datetime
    bank_name: str
    reserve_amount: float
    total_available_cash: float
    deposit_total: float
    closes_count_by_type: Dict[str, int]
    deposit_by_type: Dict[str, float]
    account_by_type: Dict[str, str]
    status: DepositOrderStatus
    created_by_id: Optional[UUID] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Fiscal invoices
class FiscalInvoiceCreate(BaseModel):
    kind: FiscalInvoiceKind
    invoice_date: datetime
    image_url: str = Field(..., min_length=1, max_length=500)
    note: Optional[str] = Field(None, max_length=1200)

class FiscalInvoiceUpdate(BaseModel):
    kind: Optional[FiscalInvoiceKind] = None
    invoice_date: Optional[datetime] = None
    image_url: Optional[str] = Field(None, min_length=1, max_length=500)
    note: Optional[str] = Field(None, max_length=1200)

class FiscalInvoiceOut(BaseModel):
    id: UUID
    kind: FiscalInvoiceKind
    invoice_date: datetime
    image_url: str
    note: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Payables
class PayableServiceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=180)
    provider_kind: PayableProviderKind
    provider_name: str = Field(..., min_length=1, max_length=180)
    description: Optional[str] = Field(None, max_length=1200)
    frequency: PayableFrequency
    default_amount: Optional[Decimal] = Field(None, ge=0)
    next_due_date: datetime
    active: Optional[bool] = None

class PayableServiceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=180)
    provider_kind: Optional[PayableProviderKind] = None
    provider_name: Optional[str] = Field(None, min_length=1, max_length=180)
    description: Optional[str] = Field(None, max_length=1200)
    frequency: Optional[PayableFrequency] = None
    default_amount: Optional[Decimal] = Field(None, ge=0)
    next_due_date: Optional[datetime] = None
    active: Optional[bool] = None

class PayablePaymentCreate(BaseModel):
    amount: Decimal = Field(..., ge=0)
    paid_at: Optional[datetime] = None
    note: Optional[str] = Field(None, max_length=1200)

class PayablePaymentOut(BaseModel):
    id: UUID
    service_id: UUID
    amount: float
    paid_at: datetime
    note: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_by_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class PayableServiceOut(BaseModel):
    id: UUID
    title: str
    provider_kind: PayableProviderKind
    provider_name: str
    description: Optional[str] = None
    frequency: PayableFrequency
    default_amount: Optional[float] = None
    next_due_date: datetime
    last_paid_at: Optional[datetime] = None
    active: bool
    created_by_id: Optional[UUID] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    payments: List[PayablePaymentOut] = []

    class Config:
        from_attributes = True

class PayableServiceBrief(BaseModel):
    id: UUID
    title: str
    provider_name: str
    frequency: PayableFrequency
    next_due_date: datetime
    active: bool

    class Config:
        from_attributes = True

class PayablePaymentWithService(PayablePaymentOut):
    service: Optional[PayableServiceBrief] = None
