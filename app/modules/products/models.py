from app.database.database import Base
from sqlalchemy import Column, String, Numeric, Uuid
from uuid import uuid4
from app.common.mixins import TimestampMixin

class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid4)
    nombre = Column(String(200), nullable=False, index=True)
    categoria = Column(String(120), nullable=True)
    precio = Column(Numeric(12, 2), nullable=False, default=0)  # Precio de venta
    costo = Column(Numeric(12, 2), nullable=False, default=0)  # Costo unitario
    imagen = Column(String(500), nullable=True)  # Ruta /uploads/...
