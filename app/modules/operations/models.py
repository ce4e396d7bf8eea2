import enum
from uuid import uuid4

from sqlalchemy import (
    Column, String, Text, Boolean, Integer, DateTime, Enum, ForeignKey, Numeric, Uuid, JSON
)
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.dates import utc_now
from app.common.mixins import TimestampMixin


class ServiceType(str, enum.Enum):
    INSTALLATION = "installation"
    MAINTENANCE = "maintenance"
    WARRANTY = "warranty"
    POS_SUPPORT = "pos_support"
    OTHER = "other"


class ServiceStatus(str, enum.Enum):
    RESERVED = "reserved"
    SURVEY = "survey"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    WARRANTY = "warranty"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class AssignmentRole(str, enum.Enum):
    LEAD = "lead"
    ASSISTANT = "assistant"


class ServiceUpdateType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    NOTE = "note"
    SCHEDULE_CHANGE = "schedule_change"
    ASSIGNMENT_CHANGE = "assignment_change"
    PAYMENT_UPDATE = "payment_update"
    STEP_UPDATE = "step_update"
    FILE_UPLOAD = "file_upload"
    WARRANTY_CREATED = "warranty_created"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


# Enum por valor: en BD se guarda "in_progress", no "IN_PROGRESS"
def _values(enum_cls):
    return [member.value for member in enum_cls]


class FieldService(Base, TimestampMixin):
    """Servicio técnico en campo (instalación, mantenimiento, garantía...)"""
    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid4)
    customer_id = Column(Uuid, ForeignKey("clients.id"), nullable=False, index=True)
    created_by_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    service_type = Column(Enum(ServiceType, name="service_type", values_callable=_values), nullable=False)
    category = Column(String(100), nullable=False)
    status = Column(Enum(ServiceStatus, name="service_status", values_callable=_values), nullable=False, default=ServiceStatus.RESERVED, index=True)
    priority = Column(Integer, nullable=False, default=2)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    quoted_amount = Column(Numeric(12, 2), nullable=True)
    deposit_amount = Column(Numeric(12, 2), nullable=True)
    payment_status = Column(Enum(PaymentStatus, name="service_payment_status", values_callable=_values), nullable=False, default=PaymentStatus.PENDING)
    address_snapshot = Column(Text, nullable=True)
    scheduled_start = Column(DateTime(timezone=True), nullable=True, index=True)
    scheduled_end = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    warranty_parent_service_id = Column(Uuid, ForeignKey("services.id"), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)

    # Relationships
    customer = relationship("Client")
    created_by = relationship("User", foreign_keys=[created_by_user_id])
    assignments = relationship("ServiceAssignment", back_populates="service", cascade="all, delete-orphan")
    steps = relationship("ServiceStep", back_populates="service", cascade="all, delete-orphan", order_by="ServiceStep.position")
    updates = relationship("ServiceUpdate", back_populates="service", cascade="all, delete-orphan", order_by="ServiceUpdate.created_at.desc()")
    files = relationship("ServiceFile", back_populates="service", cascade="all, delete-orphan", order_by="ServiceFile.created_at.desc()")
    warranty_parent = relationship("FieldService", remote_side=[id])


class ServiceAssignment(Base):
    __tablename__ = "service_assignments"

    id = Column(Uuid, primary_key=True, default=uuid4)
    service_id = Column(Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(AssignmentRole, name="service_assignment_role", values_callable=_values), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    service = relationship("FieldService", back_populates="assignments")
    user = relationship("User")


class ServiceStep(Base):
    __tablename__ = "service_steps"

    id = Column(Uuid, primary_key=True, default=uuid4)
    service_id = Column(Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    step_key = Column(String(60), nullable=False)
    step_label = Column(String(150), nullable=False)
    is_done = Column(Boolean, nullable=False, default=False)
    done_at = Column(DateTime(timezone=True), nullable=True)
    done_by_user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    service = relationship("FieldService", back_populates="steps")


class ServiceUpdate(Base):
    """Bitácora de cambios del servicio"""
    __tablename__ = "service_updates"

    id = Column(Uuid, primary_key=True, default=uuid4)
    service_id = Column(Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    changed_by_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    type = Column(Enum(ServiceUpdateType, name="service_update_type", values_callable=_values), nullable=False)
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    service = relationship("FieldService", back_populates="updates")
    changed_by = relationship("User")


class ServiceFile(Base):
    __tablename__ = "service_files"

    id = Column(Uuid, primary_key=True, default=uuid4)
    service_id = Column(Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    uploaded_by_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    file_url = Column(String(500), nullable=False)
    file_type = Column(String(120), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    service = relationship("FieldService", back_populates="files")
