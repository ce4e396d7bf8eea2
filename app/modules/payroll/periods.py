"""
Límites de quincena: del 1 al 14 y del 15 al último día del mes.
"""
import calendar
from datetime import date, timedelta
from typing import Tuple


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def period_start_for(day: date) -> date:
    return day.replace(day=1 if day.day <= 14 else 15)


def period_end_for(day: date) -> date:
    if day.day <= 14:
        return day.replace(day=14)
    return day.replace(day=last_day_of_month(day.year, day.month))


def period_bounds_for(day: date) -> Tuple[date, date]:
    return period_start_for(day), period_end_for(day)


def next_period_base(end_date: date) -> date:
    return end_date + timedelta(days=1)


def period_title(start: date, end: date) -> str:
    """Ej: ``Quincena 2 · 15-31/01/2025``"""
    number = 1 if end.day <= 14 else 2
    return f"Quincena {number} · {start.day:02d}-{end.day:02d}/{end.month:02d}/{end.year}"


def period_title_for(day: date) -> str:
    return period_title(*period_bounds_for(day))
