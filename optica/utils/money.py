# optica/utils/money.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from optica.errors.exceptions import ServiceError

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value, field="valor", error_cls=ServiceError, default=None):
    if value is None or value == "":
        if default is not None:
            return Decimal(str(default))
        raise error_cls(f"{field} es obligatorio")
    if isinstance(value, bool):
        raise error_cls(f"{field} inválido: {value}")
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise error_cls(f"{field} inválido: {value}")


def money(value):
    """Decimal -> float para respuestas JSON."""
    return float((value or ZERO).quantize(CENT, rounding=ROUND_HALF_UP))


def brl(value):
    return f"R$ {Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP):.2f}"
