import enum
from uuid import uuid4

from sqlalchemy import Column, String, Text, Boolean, DateTime, Enum, ForeignKey, Numeric, Uuid, JSON
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.dates import utc_now
from app.common.mixins import TimestampMixin


class CloseType(str, enum.Enum):
    CAPSULAS = "CAPSULAS"
    POS = "POS"
    TIENDA = "TIENDA"


class DepositOrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    EXECUTED = "EXECUTED"
    CANCELLED = "CANCELLED"


class FiscalInvoiceKind(str, enum.Enum):
    SALE = "SALE"
    PURCHASE = "PURCHASE"


class PayableProviderKind(str, enum.Enum):
    PERSON = "PERSON"
    COMPANY = "COMPANY"


class PayableFrequency(str, enum.Enum):
    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    BIWEEKLY = "BIWEEKLY"


class Close(Base, TimestampMixin):
    """Cierre de caja diario"""
    __tablename__ = "closes"

    id = Column(Uuid, primary_key=True, default=uuid4)
    type = Column(Enum(CloseType, name="close_type"), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    status = Column(String(40), nullable=False)
    cash = Column(Numeric(12, 2), nullable=False, default=0)
    transfer = Column(Numeric(12, 2), nullable=False, default=0)
    transfer_bank = Column(String(60), nullable=True)
    card = Column(Numeric(12, 2), nullable=False, default=0)
    expenses = Column(Numeric(12, 2), nullable=False, default=0)
    cash_delivered = Column(Numeric(12, 2), nullable=False, default=0)
    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_name = Column(String(150), nullable=True)


class DepositOrder(Base, TimestampMixin):
    __tablename__ = "deposit_orders"

    id = Column(Uuid, primary_key=True, default=uuid4)
    window_from = Column(DateTime(timezone=True), nullable=False, index=True)
    window_to = Column(DateTime(timezone=True), nullable=False)
    bank_name = Column(String(100), nullable=False)
    reserve_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_available_cash = Column(Numeric(12, 2), nullable=False, default=0)
    deposit_total = Column(Numeric(12, 2), nullable=False, default=0)
    closes_count_by_type = Column(JSON, nullable=False, default=dict)
    deposit_by_type = Column(JSON, nullable=False, default=dict)
    account_by_type = Column(JSON, nullable=False, default=dict)
    status = Column(Enum(DepositOrderStatus, name="deposit_order_status"), nullable=False, default=DepositOrderStatus.PENDING)
    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_name = Column(String(150), nullable=True)


class FiscalInvoice(Base, TimestampMixin):
    __tablename__ = "fiscal_invoices"

    id = Column(Uuid, primary_key=True, default=uuid4)
    kind = Column(Enum(FiscalInvoiceKind, name="fiscal_invoice_kind"), nullable=False, index=True)
    invoice_date = Column(DateTime(timezone=True), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
    note = Column(Text, nullable=True)
    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_name = Column(String(150), nullable=True)


class PayableService(Base, TimestampMixin):
    """Servicio o proveedor con pagos recurrentes"""
    __tablename__ = "payable_services"

    id = Column(Uuid, primary_key=True, default=uuid4)
    title = Column(String(180), nullable=False)
    provider_kind = Column(Enum(PayableProviderKind, name="payable_provider_kind"), nullable=False)
    provider_name = Column(String(180), nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(Enum(PayableFrequency, name="payable_frequency"), nullable=False)
    default_amount = Column(Numeric(12, 2), nullable=True)
    next_due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    last_paid_at = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_name = Column(String(150), nullable=True)

    payments = relationship(
        "PayablePayment",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="PayablePayment.paid_at.desc()"
    )


class PayablePayment(Base):
    __tablename__ = "payable_payments"

    id = Column(Uuid, primary_key=True, default=uuid4)
    service_id = Column(Uuid, ForeignKey("payable_services.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=False, index=True)
    note = Column(Text, nullable=True)
    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_name = Column(String(150), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    service = relationship("PayableService", back_populates="payments")
