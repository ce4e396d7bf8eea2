import enum
from uuid import uuid4

from sqlalchemy import (
    Column, String, Text, Boolean, Date, DateTime, Enum, ForeignKey, Numeric, Uuid, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.dates import utc_now
from app.common.mixins import TimestampMixin


class PayrollPeriodStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class PayrollEntryType(str, enum.Enum):
    COMISION_SERVICIO = "COMISION_SERVICIO"
    COMISION_VENTAS = "COMISION_VENTAS"
    BONIFICACION = "BONIFICACION"
    PAGO_COMBUSTIBLE = "PAGO_COMBUSTIBLE"
    AUSENCIA = "AUSENCIA"
    TARDE = "TARDE"
    ADELANTO = "ADELANTO"
    DESCUENTO = "DESCUENTO"
    OTRO = "OTRO"


class PayrollPeriod(Base, TimestampMixin):
    """Quincena de nómina"""
    __tablename__ = "payroll_periods"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(120), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    status = Column(Enum(PayrollPeriodStatus, name="payroll_period_status"), nullable=False, default=PayrollPeriodStatus.OPEN)


class PayrollEmployee(Base, TimestampMixin):
    """
    Empleado de nómina.

    Cuando el id coincide con el de un usuario, el empleado queda vinculado
    a sus ventas para la comisión automática.
    """
    __tablename__ = "payroll_employees"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    nombre = Column(String(150), nullable=False)
    telefono = Column(String(30), nullable=True)
    puesto = Column(String(100), nullable=True)
    cuota_minima = Column(Numeric(12, 2), nullable=False, default=0)
    seguro_ley_monto = Column(Numeric(12, 2), nullable=False, default=0)
    activo = Column(Boolean, nullable=False, default=True)


class PayrollEmployeeConfig(Base, TimestampMixin):
    __tablename__ = "payroll_employee_configs"
    __table_args__ = (
        UniqueConstraint("owner_id", "period_id", "employee_id", name="uq_payroll_config_period_employee"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    period_id = Column(Uuid, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False)
    employee_id = Column(Uuid, ForeignKey("payroll_employees.id", ondelete="CASCADE"), nullable=False)
    base_salary = Column(Numeric(12, 2), nullable=False, default=0)
    include_commissions = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)


class PayrollEntry(Base):
    """Movimiento de nómina (comisión, bono, descuento, etc.)"""
    __tablename__ = "payroll_entries"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    period_id = Column(Uuid, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Uuid, ForeignKey("payroll_employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)
    type = Column(Enum(PayrollEntryType, name="payroll_entry_type"), nullable=False)
    concept = Column(String(200), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    cantidad = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    period = relationship("PayrollPeriod")
    employee = relationship("PayrollEmployee")
