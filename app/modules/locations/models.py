"""
Última ubicación reportada por cada técnico.
"""
from uuid import uuid4

from sqlalchemy import Column, Float, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.dates import utc_now


class UserLocation(Base):
    """
    Una fila por usuario: cada reporte sobrescribe el anterior.
    """
    __tablename__ = "user_locations"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    accuracy_meters = Column(Float, nullable=True)
    altitude_meters = Column(Float, nullable=True)
    heading_degrees = Column(Float, nullable=True)
    speed_mps = Column(Float, nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, index=True)

    user = relationship("User")
