# optica/api/legacy_clients.py
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from optica.services.legacy_client_service import LegacyClientService
from optica.utils.auth import roles_required
from optica.utils.dates import date_range_args
from optica.utils.pagination import parse_pagination

bp = Blueprint("legacy_clients", __name__)


@bp.post("/")
@roles_required(["admin", "employee"])
def create_legacy_client():
    client = LegacyClientService.create_legacy_client(request.get_json() or {})
    return jsonify(client.to_dict()), 201


@bp.get("/")
@jwt_required()
def list_legacy_clients():
    page, per_page = parse_pagination(request)
    clients, total, total_pages = LegacyClientService.get_all_legacy_clients(
        page, per_page,
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify({
        "clients": [c.to_dict() for c in clients],
        "total": total,
        "page": page,
        "total_pages": total_pages,
    }), 200


@bp.get("/search")
@jwt_required()
def search_by_document():
    client = LegacyClientService.find_by_document(request.args.get("document"))
    return jsonify(client.to_dict()), 200


@bp.get("/debtors")
@jwt_required()
def debtors():
    clients = LegacyClientService.get_debtors(request.args.get("min_debt"), request.args.get("max_debt"))
    return jsonify([c.to_dict() for c in clients]), 200


@bp.get("/<int:client_id>")
@jwt_required()
def get_legacy_client(client_id):
    return jsonify(LegacyClientService.get_legacy_client_by_id(client_id).to_dict()), 200


@bp.put("/<int:client_id>")
@roles_required(["admin", "employee"])
def update_legacy_client(client_id):
    client = LegacyClientService.update_legacy_client(client_id, request.get_json() or {})
    return jsonify(client.to_dict()), 200


@bp.get("/<int:client_id>/payment-history")
@jwt_required()
def payment_history(client_id):
    start, end = date_range_args(request.args)
    history = LegacyClientService.get_payment_history(client_id, start, end)
    return jsonify([h.to_dict() for h in history]), 200


@bp.patch("/<int:client_id>/toggle-status")
@roles_required(["admin"])
def toggle_status(client_id):
    client, warning = LegacyClientService.toggle_client_status(client_id)
    body = client.to_dict()
    if warning:
        body["warning"] = warning
    return jsonify(body), 200
