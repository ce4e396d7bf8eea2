from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from typing import Any, Dict, List, Optional
from decimal import Decimal
from datetime import datetime

from app.modules.auth.models import Role
from app.modules.operations.models import (
    ServiceType, ServiceStatus, AssignmentRole, ServiceUpdateType, PaymentStatus
)

class ServiceCreate(BaseModel):
    customer_id: UUID
    service_type: ServiceType
    category: str = Field(..., min_length=1, max_length=100)
    priority: Optional[int] = Field(None, ge=1, le=3)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    quoted_amount: Optional[Decimal] = Field(None, ge=0)
    deposit_amount: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    address_snapshot: Optional[str] = None
    warranty_parent_service_id: Optional[UUID] = None
    tags: List[str] = []

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        """Acepta lista o texto separado por comas"""
        if value is None:
            return []
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        return value

class StatusChange(BaseModel):
    status: ServiceStatus
    force: bool = False
    message: Optional[str] = None

class ScheduleRequest(BaseModel):
    scheduled_start: datetime
    scheduled_end: datetime
    message: Optional[str] = None

class AssignmentItem(BaseModel):
    user_id: UUID
    role: AssignmentRole

class AssignRequest(BaseModel):
    assignments: List[AssignmentItem] = Field(..., min_length=1)

class ServiceUpdateCreate(BaseModel):
    type: ServiceUpdateType
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    message: Optional[str] = None
    step_id: Optional[UUID] = None
    step_done: bool = False

class WarrantyCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None

# Out
class ServiceUserOut(BaseModel):
    id: UUID
    nombre_completo: str
    role: Role

    class Config:
        from_attributes = True

class ServiceCustomerOut(BaseModel):
    id: UUID
    nombre: str
    telefono: str
    direccion: Optional[str] = None

    class Config:
        from_attributes = True

class AssignmentOut(BaseModel):
    id: UUID
    user_id: UUID
    role: AssignmentRole
    user: Optional[ServiceUserOut] = None

    class Config:
        from_attributes = True

class StepOut(BaseModel):
    id: UUID
    step_key: str
    step_label: str
    is_done: bool
    done_at: Optional[datetime] = None
    done_by_user_id: Optional[UUID] = None

    class Config:
        from_attributes = True

class UpdateOut(BaseModel):
    id: UUID
    type: ServiceUpdateType
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    message: Optional[str] = None
    created_at: datetime
    changed_by: Optional[ServiceUserOut] = None

    class Config:
        from_attributes = True

class FileOut(BaseModel):
    id: UUID
    service_id: UUID
    uploaded_by_user_id: UUID
    file_url: str
    file_type: str
    created_at: datetime

    class Config:
        from_attributes = True

class FieldServiceOut(BaseModel):
    id: UUID
    customer_id: UUID
    created_by_user_id: UUID
    service_type: ServiceType
    category: str
    status: ServiceStatus
    priority: int
    title: str
    description: str
    quoted_amount: Optional[float] = None
    deposit_amount: Optional[float] = None
    payment_status: PaymentStatus
    address_snapshot: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    warranty_parent_service_id: Optional[UUID] = None
    tags: List[str] = []
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    customer: Optional[ServiceCustomerOut] = None
    created_by: Optional[ServiceUserOut] = None
    assignments: List[AssignmentOut] = []
    steps: List[StepOut] = []
    updates: List[UpdateOut] = []
    files: List[FileOut] = []

    class Config:
        from_attributes = True

class ServiceList(BaseModel):
    items: List[FieldServiceOut]
    total: int
    page: int
    page_size: int
    total_pages: int

class ScheduleConflict(BaseModel):
    id: UUID
    type: ServiceType
    title: str
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

class ScheduleResult(FieldServiceOut):
    conflicts: List[ScheduleConflict] = []

class TechnicianOut(BaseModel):
    id: UUID
    nombre_completo: str
    telefono: str
    role: Role

    class Config:
        from_attributes = True
