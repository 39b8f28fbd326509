# optica/api/payments.py
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from optica.services.payment_service import PaymentService
from optica.services.payment_status_service import PaymentStatusService
from optica.services.payment_calculation_service import PaymentCalculationService
from optica.utils.auth import roles_required, current_user_id
from optica.utils.dates import date_range_args, day_arg
from optica.utils.pagination import parse_pagination

bp = Blueprint("payments", __name__)

LIST_FILTERS = ("type", "method", "status", "cash_register_id", "order_id",
                "customer_id", "legacy_client_id")


def _filters():
    filters = {k: request.args.get(k) for k in LIST_FILTERS if request.args.get(k)}
    start, end = date_range_args(request.args)
    filters["start_date"], filters["end_date"] = start, end
    return filters


def _page(payments, total, total_pages, page):
    return {
        "payments": [p.to_dict() for p in payments],
        "total": total,
        "page": page,
        "total_pages": total_pages,
    }


@bp.post("/")
@jwt_required()
def create_payment():
    data = request.get_json() or {}
    payment = PaymentService.create_payment(data, current_user_id())
    return jsonify(payment.to_dict()), 201


@bp.get("/")
@jwt_required()
def list_payments():
    page, per_page = parse_pagination(request)
    payments, total, total_pages = PaymentService.get_all_payments(page, per_page, **_filters())
    return jsonify(_page(payments, total, total_pages, page)), 200


@bp.get("/daily")
@jwt_required()
def daily_payments():
    payments = PaymentService.get_daily_payments(day_arg(request.args), request.args.get("type"))
    return jsonify([p.to_dict() for p in payments]), 200


@bp.get("/deleted")
@roles_required(["admin"])
def deleted_payments():
    page, per_page = parse_pagination(request)
    payments, total, total_pages = PaymentService.get_deleted_payments(page, per_page, **_filters())
    return jsonify(_page(payments, total, total_pages, page)), 200


@bp.get("/report/daily")
@jwt_required()
def daily_financial_report():
    return jsonify(PaymentService.get_daily_financial_report(day_arg(request.args))), 200


@bp.get("/checks/<status>")
@jwt_required()
def checks_by_status(status):
    start, end = date_range_args(request.args)
    checks = PaymentStatusService.get_checks_by_status(status, start, end)
    return jsonify([c.to_dict() for c in checks]), 200


@bp.post("/recalculate-debts")
@roles_required(["admin"])
def recalculate_debts():
    data = request.get_json(silent=True) or {}
    client_id = data.get("client_id") or request.args.get("client_id")
    return jsonify(PaymentCalculationService.recalculate_client_debts(client_id)), 200


@bp.get("/<int:payment_id>")
@jwt_required()
def get_payment(payment_id):
    return jsonify(PaymentService.get_payment_by_id(payment_id).to_dict()), 200


@bp.post("/<int:payment_id>/cancel")
@jwt_required()
def cancel_payment(payment_id):
    payment = PaymentService.cancel_payment(payment_id, current_user_id())
    return jsonify(payment.to_dict()), 200


@bp.delete("/<int:payment_id>")
@roles_required(["admin"])
def delete_payment(payment_id):
    payment = PaymentService.soft_delete_payment(payment_id, current_user_id())
    return jsonify(payment.to_dict()), 200


@bp.put("/<int:payment_id>/check-status")
@jwt_required()
def update_check_status(payment_id):
    data = request.get_json() or {}
    payment = PaymentStatusService.update_check_compensation_status(
        payment_id, data.get("status"), data.get("rejection_reason"), current_user_id(),
    )
    return jsonify(payment.to_dict()), 200
