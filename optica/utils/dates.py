# optica/utils/dates.py
from datetime import datetime, date, time, timedelta

from dateutil import parser as date_parser

from optica.errors.exceptions import ServiceError


def parse_datetime(value, field="fecha"):
    """Acepta datetime, date o texto ISO; None queda None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        parsed = date_parser.isoparse(str(value))
    except (ValueError, OverflowError):
        raise ValueError(f"{field} inválida: {value}")
    # guardamos fechas locales sin zona
    return parsed.replace(tzinfo=None)


def day_bounds(day):
    """Inicio (inclusive) y fin (exclusivo) del día."""
    if isinstance(day, datetime):
        day = day.date()
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def date_range_args(args, start_key="start_date", end_key="end_date"):
    """Lee start/end de la query; end es inclusivo por día (se devuelve exclusivo)."""
    try:
        start = parse_datetime(args.get(start_key), start_key)
        end = parse_datetime(args.get(end_key), end_key)
    except ValueError as e:
        raise ServiceError(str(e))
    if end is not None and end.time() == time.min:
        end = end + timedelta(days=1)
    return start, end


def day_arg(args, key="date"):
    """Fecha de la query (default: hoy)."""
    try:
        value = parse_datetime(args.get(key), key)
    except ValueError as e:
        raise ServiceError(str(e))
    return (value or datetime.now()).date()
