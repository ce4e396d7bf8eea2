from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional
from decimal import Decimal
from datetime import date, datetime

from app.modules.payroll.models import PayrollEntryType, PayrollPeriodStatus

# Periods
class PayrollPeriodCreate(BaseModel):
    start: date
    end: date
    title: str = Field(..., min_length=1, max_length=120)

class PayrollPeriodOut(BaseModel):
    id: UUID
    owner_id: UUID
    title: str
    start_date: date
    end_date: date
    status: PayrollPeriodStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Employees
class PayrollEmployeeUpsert(BaseModel):
    id: Optional[UUID] = None
    nombre: str
    telefono: Optional[str] = None
    puesto: Optional[str] = None
    cuota_minima: Optional[Decimal] = Field(None, ge=0)
    seguro_ley_monto: Optional[Decimal] = Field(None, ge=0)
    activo: Optional[bool] = None

class PayrollEmployeeOut(BaseModel):
    id: UUID
    owner_id: UUID
    nombre: str
    telefono: Optional[str] = None
    puesto: Optional[str] = None
    cuota_minima: float
    seguro_ley_monto: float
    activo: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Config per period
class PayrollConfigUpsert(BaseModel):
    period_id: UUID
    employee_id: UUID
    base_salary: Decimal = Field(..., ge=0)
    include_commissions: bool = True
    notes: Optional[str] = None

class PayrollConfigOut(BaseModel):
    id: UUID
    owner_id: UUID
    period_id: UUID
    employee_id: UUID
    base_salary: float
    include_commissions: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Entries
class PayrollEntryCreate(BaseModel):
    period_id: UUID
    employee_id: UUID
    date: datetime
    type: PayrollEntryType
    concept: str = Field(..., min_length=1, max_length=200)
    amount: Decimal
    cantidad: Optional[Decimal] = None

class PayrollEntryOut(BaseModel):
    id: UUID
    owner_id: UUID
    period_id: UUID
    employee_id: UUID
    date: datetime
    type: PayrollEntryType
    concept: str
    amount: float
    cantidad: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True

class PayrollTotals(BaseModel):
    base_salary: float
    commissions: float
    service_commissions: float
    bonuses: float
    other_additions: float
    absences: float
    late: float
    advances: float
    other_deductions: float
    seguro_ley: float
    sales_commission_auto: float
    sales_amount_this_period: float
    sales_goal: float
    sales_goal_reached: bool
    sales_commission_source: str
    additions: float
    deductions: float
    total: float
    employee_exists: bool

class PayrollHistoryRow(BaseModel):
    entry_id: str
    employee_name: str
    period_id: UUID
    period_title: str
    period_start: date
    period_end: date
    period_status: PayrollPeriodStatus
    base_salary: float
    commission_from_sales: float
    bonuses_amount: float
    deductions_amount: float
    benefits_amount: float
    gross_total: float
    net_total: float
    seguro_ley_monto: float
    sales_commission_auto: float
    sales_amount_this_period: float
    sales_goal: float
    sales_goal_reached: bool
