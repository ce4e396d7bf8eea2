"""
Cálculo de asistencia diaria a partir de ponches.

Cada día (hora local RD) se evalúa contra un horario fijo: entrada, salida,
almuerzo y permisos. Los domingos no generan tardanzas ni incidencias.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.common.dates import as_utc, rd_date_key, rd_minutes_of_day
from app.modules.punch.models import PunchType


@dataclass(frozen=True)
class AttendanceConfig:
    scheduled_start_minutes: int = 9 * 60
    scheduled_end_minutes: int = 18 * 60
    lunch_expected_minutes: int = 60
    permiso_expected_minutes: int = 60
    workday_minutes: int = 8 * 60
    # 0 = domingo
    weekend_days: Tuple[int, ...] = (0,)


DEFAULT_CONFIG = AttendanceConfig()


@dataclass
class AttendanceIncident:
    type: str
    minutes: int
    reference_time: Optional[datetime] = None


@dataclass
class AttendanceDayMetrics:
    date: str
    entry: Optional[datetime]
    exit: Optional[datetime]
    lunch_minutes: int
    lunch_complete: bool
    permiso_minutes: int
    permiso_complete: bool
    tardiness_minutes: int
    early_leave_minutes: int
    worked_minutes_net: Optional[int]
    not_worked_minutes: int
    incomplete: bool
    is_weekend: bool
    incidents: List[AttendanceIncident] = field(default_factory=list)


@dataclass
class AttendanceAggregate:
    tardiness_minutes: int = 0
    early_leave_minutes: int = 0
    not_worked_minutes: int = 0
    worked_minutes: int = 0
    incomplete_days: int = 0
    incidents_count: int = 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def diff_minutes(end: datetime, start: datetime) -> int:
    return _round_half_up((as_utc(end) - as_utc(start)).total_seconds() / 60)


def _type_of(punch) -> PunchType:
    return punch.type if isinstance(punch.type, PunchType) else PunchType(punch.type)


def _find_first(punches: Sequence, punch_type: PunchType):
    return next((p for p in punches if _type_of(p) == punch_type), None)


def _find_last(punches: Sequence, punch_type: PunchType):
    return next((p for p in reversed(punches) if _type_of(p) == punch_type), None)


def _pair(punches: Sequence, start_type: PunchType, end_type: PunchType):
    start = _find_first(punches, start_type)
    if start is None:
        return None, None
    start_ts = as_utc(start.timestamp)
    end = next(
        (p for p in punches if _type_of(p) == end_type and as_utc(p.timestamp) > start_ts),
        None
    )
    return start, end


def _duration(start, end, fallback: int) -> Tuple[int, bool]:
    if start is not None and end is not None:
        return max(0, diff_minutes(end.timestamp, start.timestamp)), True
    if start is not None or end is not None:
        return fallback, False
    return 0, True


def is_weekend(date_key: str, config: AttendanceConfig = DEFAULT_CONFIG) -> bool:
    # isoweekday: lunes=1 ... domingo=7 -> domingo=0
    weekday = date.fromisoformat(date_key).isoweekday() % 7
    return weekday in config.weekend_days


def group_by_day(punches: Iterable) -> Dict[str, list]:
    grouped: Dict[str, list] = {}
    for punch in punches:
        grouped.setdefault(rd_date_key(punch.timestamp), []).append(punch)
    return grouped


def compute_day_metrics(date_key: str, punches: Sequence, config: AttendanceConfig = DEFAULT_CONFIG) -> AttendanceDayMetrics:
    ordered = sorted(punches, key=lambda p: as_utc(p.timestamp))
    entry = _find_first(ordered, PunchType.ENTRADA_LABOR)
    exit_ = _find_last(ordered, PunchType.SALIDA_LABOR)
    weekend = is_weekend(date_key, config)

    lunch_minutes, lunch_complete = _duration(
        *_pair(ordered, PunchType.SALIDA_ALMUERZO, PunchType.ENTRADA_ALMUERZO),
        config.lunch_expected_minutes
    )
    permiso_minutes, permiso_complete = _duration(
        *_pair(ordered, PunchType.SALIDA_PERMISO, PunchType.ENTRADA_PERMISO),
        config.permiso_expected_minutes
    )

    tardiness = 0
    if entry is not None and not weekend:
        tardiness = max(0, rd_minutes_of_day(entry.timestamp) - config.scheduled_start_minutes)

    early_leave = 0
    if exit_ is not None and not weekend:
        early_leave = max(0, config.scheduled_end_minutes - rd_minutes_of_day(exit_.timestamp))

    worked = None
    if entry is not None and exit_ is not None:
        worked = max(0, diff_minutes(exit_.timestamp, entry.timestamp) - lunch_minutes - permiso_minutes)

    incomplete = entry is None or exit_ is None

    if weekend:
        not_worked = 0
    elif incomplete or worked is None:
        not_worked = config.workday_minutes
    else:
        not_worked = max(0, config.workday_minutes - worked)

    incidents: List[AttendanceIncident] = []
    if not weekend:
        if tardiness > 0:
            incidents.append(AttendanceIncident("TARDY", tardiness, entry.timestamp))
        if early_leave > 0:
            incidents.append(AttendanceIncident("EARLY", early_leave, exit_.timestamp))
        if incomplete:
            reference = entry.timestamp if entry is not None else (exit_.timestamp if exit_ is not None else None)
            incidents.append(AttendanceIncident("INCOMPLETE", config.workday_minutes, reference))

    return AttendanceDayMetrics(
        date=date_key,
        entry=entry.timestamp if entry is not None else None,
        exit=exit_.timestamp if exit_ is not None else None,
        lunch_minutes=lunch_minutes,
        lunch_complete=lunch_complete,
        permiso_minutes=permiso_minutes,
        permiso_complete=permiso_complete,
        tardiness_minutes=tardiness,
        early_leave_minutes=early_leave,
        worked_minutes_net=worked,
        not_worked_minutes=not_worked,
        incomplete=incomplete,
        is_weekend=weekend,
        incidents=incidents,
    )


def compute_days(punches: Sequence, config: AttendanceConfig = DEFAULT_CONFIG) -> List[AttendanceDayMetrics]:
    """Métricas por día, del más reciente al más antiguo."""
    days = [compute_day_metrics(key, items, config) for key, items in group_by_day(punches).items()]
    return sorted(days, key=lambda d: d.date, reverse=True)


def aggregate_days(days: Iterable[AttendanceDayMetrics]) -> AttendanceAggregate:
    aggregate = AttendanceAggregate()
    for day in days:
        aggregate.tardiness_minutes += day.tardiness_minutes
        aggregate.early_leave_minutes += day.early_leave_minutes
        aggregate.not_worked_minutes += day.not_worked_minutes
        aggregate.worked_minutes += day.worked_minutes_net or 0
        if day.incomplete:
            aggregate.incomplete_days += 1
        aggregate.incidents_count += len(day.incidents)
    return aggregate
