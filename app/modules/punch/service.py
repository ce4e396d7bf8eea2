import logging
from dataclasses import asdict
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.common.dates import utc_now, parse_range, apply_range
from app.modules.auth.models import User
from app.modules.punch.models import Punch, PunchType
from app.modules.punch.schemas import PunchOut, PunchUserOut
from app.modules.punch import attendance_calculator as calculator

logger = logging.getLogger(__name__)


def _user_info(user: User) -> dict:
    return PunchUserOut.model_validate(user).model_dump()


class PunchService:
    """Servicio de ponches y reportes de asistencia"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, user_id: Optional[UUID], from_: Optional[str], to: Optional[str]):
        query = self.db.query(Punch)
        if user_id:
            query = query.filter(Punch.user_id == user_id)
        return apply_range(query, Punch.timestamp, parse_range(from_, to))

    def create_punch(self, user: User, punch_type: PunchType) -> Punch:
        punch = Punch(user_id=user.id, type=punch_type, timestamp=utc_now())
        self.db.add(punch)
        self.db.commit()
        self.db.refresh(punch)
        logger.info(f"Ponche {punch_type.value} de {user.id}")
        return punch

    def list_mine(self, user: User, from_: Optional[str] = None, to: Optional[str] = None) -> List[Punch]:
        return self._query(user.id, from_, to).order_by(Punch.timestamp.desc()).all()

    def list_admin(self, user_id: Optional[UUID] = None, from_: Optional[str] = None, to: Optional[str] = None) -> List[Punch]:
        return (
            self._query(user_id, from_, to)
            .options(selectinload(Punch.user))
            .order_by(Punch.timestamp.desc())
            .all()
        )

    def attendance_summary(
        self,
        user_id: Optional[UUID] = None,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        incidents_only: bool = False
    ) -> dict:
        """
        Resumen de asistencia agrupado por usuario

        Args:
            user_id: Filtrar un usuario
            from_: Inicio del rango (fecha RD o ISO)
            to: Fin del rango (inclusivo si es solo fecha)
            incidents_only: Solo días con incidencias

        Returns:
            dict con totals, users y per_day
        """
        punches = (
            self._query(user_id, from_, to)
            .options(selectinload(Punch.user))
            .order_by(Punch.timestamp.asc())
            .all()
        )

        grouped = {}
        for punch in punches:
            grouped.setdefault(punch.user_id, []).append(punch)

        totals = {
            "tardy_count": 0,
            "early_leave_count": 0,
            "incomplete_count": 0,
            "not_worked_minutes": 0,
        }
        users = []
        per_day = []

        for user_punches in grouped.values():
            user = user_punches[0].user
            if user is None:
                continue

            days = calculator.compute_days(user_punches)
            if incidents_only:
                days = [d for d in days if d.incidents]
                if not days:
                    continue

            for day in days:
                if day.tardiness_minutes > 0:
                    totals["tardy_count"] += 1
                if day.early_leave_minutes > 0:
                    totals["early_leave_count"] += 1
                if day.incomplete:
                    totals["incomplete_count"] += 1
                totals["not_worked_minutes"] += day.not_worked_minutes

            aggregate = calculator.aggregate_days(days)
            day_dicts = [dict(asdict(d), user_id=str(user.id)) for d in days]
            per_day.extend(day_dicts)
            users.append({
                "user": _user_info(user),
                "days": [asdict(d) for d in days],
                "aggregate": asdict(aggregate),
            })

        users.sort(key=lambda u: u["aggregate"]["incidents_count"], reverse=True)
        per_day.sort(key=lambda d: d["date"], reverse=True)

        return {"totals": totals, "users": users, "per_day": per_day}

    def attendance_detail(
        self,
        user_id: UUID,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        incidents_only: bool = False
    ) -> dict:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")

        punches = self._query(user_id, from_, to).order_by(Punch.timestamp.asc()).all()
        days = calculator.compute_days(punches)
        if incidents_only:
            days = [d for d in days if d.incidents]

        return {
            "user": _user_info(user),
            "punches": [PunchOut.model_validate(p).model_dump() for p in punches],
            "days": [asdict(d) for d in days],
            "totals": asdict(calculator.aggregate_days(days)),
        }
