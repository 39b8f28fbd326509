# optica/utils/ids.py
from optica.errors.exceptions import ServiceError


def to_id(value, field="id", error_cls=ServiceError):
    """Id entero positivo recibido por JSON o query string; None y "" quedan None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise error_cls(f"{field} inválido")
    try:
        parsed = int(str(value).strip())
    except ValueError:
        raise error_cls(f"{field} inválido")
    if parsed <= 0:
        raise error_cls(f"{field} inválido")
    return parsed
