# optica/api/laboratories.py
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from optica.services.laboratory_service import LaboratoryService
from optica.utils.auth import roles_required
from optica.utils.pagination import parse_pagination

bp = Blueprint("laboratories", __name__)


def _bool_arg(name):
    value = request.args.get(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "si")


@bp.post("/")
@roles_required(["admin", "employee"])
def create_laboratory():
    laboratory = LaboratoryService.create_laboratory(request.get_json() or {})
    return jsonify(laboratory.to_dict()), 201


@bp.get("/")
@jwt_required()
def list_laboratories():
    page, per_page = parse_pagination(request)
    labs, total, total_pages = LaboratoryService.get_all_laboratories(
        page, per_page, is_active=_bool_arg("is_active"),
    )
    return jsonify({
        "laboratories": [lab.to_dict() for lab in labs],
        "total": total,
        "page": page,
        "total_pages": total_pages,
    }), 200


@bp.get("/<int:laboratory_id>")
@jwt_required()
def get_laboratory(laboratory_id):
    return jsonify(LaboratoryService.get_laboratory_by_id(laboratory_id).to_dict()), 200


@bp.put("/<int:laboratory_id>")
@roles_required(["admin", "employee"])
def update_laboratory(laboratory_id):
    laboratory = LaboratoryService.update_laboratory(laboratory_id, request.get_json() or {})
    return jsonify(laboratory.to_dict()), 200


@bp.delete("/<int:laboratory_id>")
@roles_required(["admin"])
def delete_laboratory(laboratory_id):
    LaboratoryService.delete_laboratory(laboratory_id)
    return "", 204


@bp.patch("/<int:laboratory_id>/toggle-status")
@roles_required(["admin", "employee"])
def toggle_laboratory(laboratory_id):
    return jsonify(LaboratoryService.toggle_active(laboratory_id).to_dict()), 200
