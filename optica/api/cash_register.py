# optica/api/cash_register.py
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from optica.services.cash_register_service import CashRegisterService
from optica.utils.auth import roles_required, current_user_id
from optica.utils.dates import date_range_args, day_arg
from optica.utils.money import money
from optica.utils.pagination import parse_pagination

bp = Blueprint("cash_registers", __name__)


# ---------------------- abrir caja ----------------------

@bp.post("/open")
@roles_required(["admin"])
def open_cash_register():
    data = request.get_json() or {}
    register = CashRegisterService.open_register(
        data.get("opening_balance"), current_user_id(), data.get("observations"),
    )
    return jsonify(register.to_dict()), 201


# ---------------------- cerrar caja ----------------------

@bp.post("/close")
@roles_required(["admin"])
def close_cash_register():
    data = request.get_json() or {}
    register, difference = CashRegisterService.close_register(
        data.get("closing_balance"), current_user_id(), data.get("observations"),
    )
    return jsonify({
        "register": register.to_dict(),
        "difference": money(difference),
    }), 200


# ---------------------- consultas ----------------------

@bp.get("/current")
@jwt_required()
def current_cash_register():
    return jsonify(CashRegisterService.get_current_register()), 200


@bp.get("/")
@jwt_required()
def list_cash_registers():
    page, per_page = parse_pagination(request)
    start, end = date_range_args(request.args)
    result = CashRegisterService.get_all_registers(
        page, per_page,
        status=request.args.get("status"),
        start_date=start,
        end_date=end,
        search=request.args.get("search"),
    )
    return jsonify(result), 200


@bp.get("/deleted")
@roles_required(["admin"])
def deleted_cash_registers():
    page, per_page = parse_pagination(request)
    return jsonify(CashRegisterService.get_deleted_registers(page, per_page)), 200


@bp.get("/summary/daily")
@jwt_required()
def daily_summary():
    return jsonify(CashRegisterService.get_daily_summary(day_arg(request.args))), 200


@bp.get("/<int:register_id>")
@jwt_required()
def get_cash_register(register_id):
    return jsonify(CashRegisterService.get_register_by_id(register_id)), 200


@bp.get("/<int:register_id>/summary")
@jwt_required()
def cash_register_summary(register_id):
    return jsonify(CashRegisterService.get_register_summary(register_id)), 200


@bp.delete("/<int:register_id>")
@roles_required(["admin"])
def delete_cash_register(register_id):
    register = CashRegisterService.soft_delete_register(register_id, current_user_id())
    return jsonify({"message": "Caja eliminada", "register": register.to_dict()}), 200
