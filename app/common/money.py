from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Optional[Number]) -> Decimal:
    """Redondea a centavos (medio hacia arriba)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_float(value: Optional[Number]) -> float:
    if value is None:
        return 0.0
    return float(value)
