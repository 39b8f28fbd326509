# optica/utils/transaction.py
from contextlib import contextmanager

from flask import current_app

from optica.extensions import db
from optica.errors.exceptions import ServiceError


@contextmanager
def atomic(action):
    """commit al salir; rollback si algo falla (errores de negocio no se loguean como excepción)."""
    try:
        yield
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error {action}")
        raise
