from app.database.database import Base
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from app.common.dates import utc_now
from app.common.mixins import TimestampMixin

class Cotizacion(Base, TimestampMixin):
    __tablename__ = "cotizaciones"

    id = Column(Uuid, primary_key=True, default=uuid4)
    created_by_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    customer_name = Column(String(200), nullable=False)
    customer_phone = Column(String(40), nullable=False, index=True)
    note = Column(Text, nullable=True)
    include_itbis = Column(Boolean, default=False, nullable=False)
    itbis_rate = Column(Numeric(5, 4), nullable=False, default=0.18)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    itbis_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    items = relationship(
        "CotizacionItem",
        back_populates="cotizacion",
        cascade="all, delete-orphan",
        order_by="CotizacionItem.created_at"
    )

class CotizacionItem(Base):
    __tablename__ = "cotizacion_items"

    id = Column(Uuid, primary_key=True, default=uuid4)
    cotizacion_id = Column(Uuid, ForeignKey("cotizaciones.id", ondelete="CASCADE"), nullable=False, index=True)
    # Puede venir del catálogo local o de FULLPOS, por eso no es FK
    product_id = Column(String(64), nullable=True)
    product_name_snapshot = Column(String(200), nullable=False)
    product_image_snapshot = Column(String(500), nullable=True)
    qty = Column(Numeric(12, 2), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    cotizacion = relationship("Cotizacion", back_populates="items")
