from app.database.database import Base
from sqlalchemy import Column, String, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from app.common.mixins import TimestampMixin, SoftDeleteMixin

class Client(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    nombre = Column(String(200), nullable=False)
    telefono = Column(String(40), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    direccion = Column(String(500), nullable=True)
    notas = Column(Text, nullable=True)

    owner = relationship("User")
