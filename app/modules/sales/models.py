from app.database.database import Base
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from decimal import Decimal
from app.common.dates import utc_now
from app.common.mixins import TimestampMixin, SoftDeleteMixin

COMMISSION_RATE = Decimal("0.10")

class Sale(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "sales"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(Uuid, ForeignKey("clients.id"), nullable=True, index=True)
    sale_date = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    note = Column(Text, nullable=True)

    total_sold = Column(Numeric(12, 2), nullable=False, default=0)
    total_cost = Column(Numeric(12, 2), nullable=False, default=0)
    total_profit = Column(Numeric(12, 2), nullable=False, default=0)
    commission_rate = Column(Numeric(5, 4), nullable=False, default=COMMISSION_RATE)
    commission_amount = Column(Numeric(12, 2), nullable=False, default=0)

    deleted_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    customer = relationship("Client")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.created_at")

class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Uuid, primary_key=True, default=uuid4)
    sale_id = Column(Uuid, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name_snapshot = Column(String(200), nullable=False)
    product_image_snapshot = Column(String(500), nullable=True)
    qty = Column(Numeric(12, 2), nullable=False)
    price_sold_unit = Column(Numeric(12, 2), nullable=False)
    cost_unit_snapshot = Column(Numeric(12, 2), nullable=False)
    subtotal_sold = Column(Numeric(12, 2), nullable=False)
    subtotal_cost = Column(Numeric(12, 2), nullable=False)
    profit = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    sale = relationship("Sale", back_populates="items")
