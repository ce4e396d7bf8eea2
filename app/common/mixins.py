"""
Mixins comunes para modelos
"""
from sqlalchemy import Column, DateTime, Boolean
from sqlalchemy.sql import func

from app.common.dates import utc_now


class TimestampMixin:
    """created_at / updated_at en UTC"""

    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False)


class SoftDeleteMixin:
    """Borrado lógico: las consultas normales filtran is_deleted"""

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def soft_delete(self):
        self.is_deleted = True
        self.deleted_at = utc_now()
