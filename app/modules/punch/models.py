import enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.dates import utc_now


class PunchType(str, enum.Enum):
    ENTRADA_LABOR = "ENTRADA_LABOR"
    SALIDA_LABOR = "SALIDA_LABOR"
    SALIDA_ALMUERZO = "SALIDA_ALMUERZO"
    ENTRADA_ALMUERZO = "ENTRADA_ALMUERZO"
    SALIDA_PERMISO = "SALIDA_PERMISO"
    ENTRADA_PERMISO = "ENTRADA_PERMISO"


class Punch(Base):
    __tablename__ = "punches"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(PunchType, name="punch_type"), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    user = relationship("User")
