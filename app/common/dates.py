"""
Utilidades de fecha para la zona horaria de República Dominicana.

RD usa UTC-4 todo el año (sin horario de verano). Las fechas se guardan en UTC
y los días de negocio (ponches, cierres, quincenas) se calculan en hora local.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Optional

from fastapi import HTTPException, status

RD_TZ = timezone(timedelta(hours=-4))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normaliza a UTC; las fechas sin zona (SQLite) se asumen en UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_rd(value: datetime) -> datetime:
    return as_utc(value).astimezone(RD_TZ)


def rd_today() -> date:
    return utc_now().astimezone(RD_TZ).date()


def rd_date_key(value: datetime) -> str:
    """Clave YYYY-MM-DD del día local en RD."""
    return to_rd(value).date().isoformat()


def rd_minutes_of_day(value: datetime) -> int:
    local = to_rd(value)
    return local.hour * 60 + local.minute


def rd_day_start(day: date) -> datetime:
    """Medianoche RD de ``day`` expresada en UTC."""
    return datetime.combine(day, time.min, tzinfo=RD_TZ).astimezone(timezone.utc)


def is_same_rd_day(a: datetime, b: datetime) -> bool:
    return rd_date_key(a) == rd_date_key(b)


class DateRange(NamedTuple):
    start: Optional[datetime]
    end: Optional[datetime]  # exclusivo


def _is_date_only(value: str) -> bool:
    return len(value) == 10 and value[4] == "-" and value[7] == "-"


def parse_datetime(value: str, field: str = "fecha") -> datetime:
    """Parsea ISO-8601; una fecha sin hora se toma como medianoche RD."""
    raw = (value or "").strip()
    try:
        if _is_date_only(raw):
            return rd_day_start(date.fromisoformat(raw))
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Fecha inválida en '{field}': {value}"
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=RD_TZ)
    return parsed.astimezone(timezone.utc)


def parse_date(value: str, field: str = "fecha") -> date:
    try:
        return date.fromisoformat((value or "").strip()[:10])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Fecha inválida en '{field}': {value}"
        )


def parse_range(from_: Optional[str], to: Optional[str]) -> DateRange:
    """
    Convierte filtros ``from``/``to`` en un rango UTC semiabierto.

    Un ``to`` de solo fecha incluye el día completo.
    """
    start = parse_datetime(from_, "from") if from_ else None
    end = None
    if to:
        end = parse_datetime(to, "to")
        if _is_date_only(to.strip()):
            end = end + timedelta(days=1)
        else:
            end = end + timedelta(microseconds=1)
    return DateRange(start, end)


def apply_range(query, column, rng: DateRange):
    if rng.start is not None:
        query = query.filter(column >= rng.start)
    if rng.end is not None:
        query = query.filter(column < rng.end)
    return query
