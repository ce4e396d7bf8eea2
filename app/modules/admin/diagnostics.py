"""
Reporte de calidad de datos de usuarios.
"""
from typing import List

from sqlalchemy import String, and_, cast, func, or_
from sqlalchemy.orm import Session

from app.common.dates import utc_now
from app.modules.auth.models import User, ALL_ROLES
from app.modules.locations.models import UserLocation

SAMPLE_LIMIT = 25

OPTIONAL_TEXT_FIELDS = (
    "telefono", "telefono_familiar", "cedula",
    "foto_cedula_url", "foto_licencia_url", "foto_personal_url",
)
REQUIRED_FIELDS = ("email", "nombre_completo", "telefono", "edad", "role")


def _blank(column):
    return and_(column.isnot(None), func.trim(column) == "")


class AdminDiagnosticsService:
    def __init__(self, db: Session):
        self.db = db

    def _rows(self, query) -> List[dict]:
        rows = []
        for row in query.limit(SAMPLE_LIMIT).all():
            item = dict(row._mapping)
            if "id" in item:
                item["id"] = str(item["id"])
            if "user_id" in item:
                item["user_id"] = str(item["user_id"])
            rows.append(item)
        return rows

    def users_integrity(self) -> dict:
        role_text = cast(User.role, String)

        required_filter = or_(*[getattr(User, f).is_(None) for f in REQUIRED_FIELDS])
        required_nulls = self.db.query(
            User.id,
            User.email,
            *[getattr(User, f).is_(None).label(f"{f}_is_null") for f in REQUIRED_FIELDS]
        ).filter(required_filter).order_by(User.created_at.desc())

        invalid_filter = func.coalesce(role_text, "").notin_(ALL_ROLES)
        invalid_roles = self.db.query(
            User.id, User.email, func.coalesce(role_text, "").label("role")
        ).filter(invalid_filter).order_by(User.created_at.desc())

        # telefono es obligatorio, solo se reporta si viene vacío junto a otro campo
        empty_filter = or_(*[_blank(getattr(User, f)) for f in OPTIONAL_TEXT_FIELDS if f != "telefono"])
        empty_strings = self.db.query(
            User.id,
            User.email,
            *[_blank(getattr(User, f)).label(f"{f}_empty") for f in OPTIONAL_TEXT_FIELDS]
        ).filter(empty_filter).order_by(User.created_at.desc())

        orphan_locations = (
            self.db.query(UserLocation.user_id)
            .outerjoin(User, User.id == UserLocation.user_id)
            .filter(User.id.is_(None))
            .order_by(UserLocation.updated_at.desc())
        )

        email_key = func.lower(User.email)
        duplicate_emails = (
            self.db.query(email_key.label("email"), func.count(User.id).label("count"))
            .filter(User.email.isnot(None))
            .group_by(email_key)
            .having(func.count(User.id) > 1)
            .order_by(func.count(User.id).desc())
        )
        duplicate_cedulas = (
            self.db.query(User.cedula.label("cedula"), func.count(User.id).label("count"))
            .filter(User.cedula.isnot(None), func.trim(User.cedula) != "")
            .group_by(User.cedula)
            .having(func.count(User.id) > 1)
            .order_by(func.count(User.id).desc())
        )

        duplicate_email_rows = self._rows(duplicate_emails)
        duplicate_cedula_rows = self._rows(duplicate_cedulas)

        return {
            "checked_at": utc_now().isoformat(),
            "totals": {
                "total_users": self.db.query(func.count(User.id)).scalar() or 0,
            },
            "counts": {
                "required_nulls": required_nulls.order_by(None).count(),
                "invalid_roles": invalid_roles.order_by(None).count(),
                "empty_optional_strings": empty_strings.order_by(None).count(),
                "orphan_user_locations": orphan_locations.order_by(None).count(),
                "duplicate_emails": len(duplicate_email_rows),
                "duplicate_cedulas": len(duplicate_cedula_rows),
            },
            "samples": {
                "required_nulls": self._rows(required_nulls),
                "invalid_roles": self._rows(invalid_roles),
                "empty_optional_strings": self._rows(empty_strings),
                "orphan_user_locations": self._rows(orphan_locations),
                "duplicate_emails": duplicate_email_rows,
                "duplicate_cedulas": duplicate_cedula_rows,
            },
        }
