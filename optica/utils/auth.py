# optica/utils/auth.py
from functools import wraps

from flask import jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from optica.extensions import db
from optica.models.catalog import User


# -----------------------------
# Decorador de roles
# -----------------------------
def roles_required(required_roles):
    """
    Uso: @roles_required(["admin"])
    """
    def wrapper(fn):
        @wraps(fn)
        @jwt_required()
        def decorated(*args, **kwargs):
            claims = get_jwt() or {}
            role = (claims.get("role") or "").lower()
            allowed = [r.lower() for r in (required_roles or [])]
            if role not in allowed:
                current_app.logger.warning(
                    f"Acceso denegado. Usuario {get_jwt_identity()} con rol '{role}' requiere {allowed}"
                )
                return jsonify(error="Forbidden", detail="Permiso negado: rol insuficiente."), 403
            return fn(*args, **kwargs)
        return decorated
    return wrapper


def current_user_id():
    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError):
        return None


# -----------------------------
# Callbacks de JWT centralizados
# -----------------------------
def register_jwt_callbacks(jwt_manager):
    @jwt_manager.additional_claims_loader
    def add_claims_to_access_token(identity):
        try:
            user = db.session.get(User, int(identity))
        except (TypeError, ValueError):
            user = None
        return {"role": user.role if user else None}

    @jwt_manager.user_lookup_loader
    def user_lookup_callback(jwt_header, jwt_data):
        identity = jwt_data.get("sub")
        try:
            identity_int = int(identity)
        except (TypeError, ValueError):
            return None
        return db.session.get(User, identity_int)
