# optica/api/orders.py
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from optica.services.order_service import OrderService
from optica.utils.auth import roles_required, current_user_id
from optica.utils.dates import date_range_args, day_arg
from optica.utils.pagination import parse_pagination

bp = Blueprint("orders", __name__)

LIST_FILTERS = ("status", "client_id", "employee_id", "laboratory_id",
                "payment_status", "service_order", "search")


def _filters():
    filters = {k: request.args.get(k) for k in LIST_FILTERS if request.args.get(k)}
    filters["start_date"], filters["end_date"] = date_range_args(request.args)
    return filters


def _page(orders, total, total_pages, page):
    return {
        "orders": [o.to_dict() for o in orders],
        "total": total,
        "page": page,
        "total_pages": total_pages,
    }


@bp.post("/")
@roles_required(["admin", "employee"])
def create_order():
    data = request.get_json() or {}
    order = OrderService.create_order(data, employee_id=current_user_id())
    return jsonify(order.to_dict()), 201


@bp.get("/")
@jwt_required()
def list_orders():
    page, per_page = parse_pagination(request)
    orders, total, total_pages = OrderService.get_all_orders(page, per_page, **_filters())
    return jsonify(_page(orders, total, total_pages, page)), 200


@bp.get("/deleted")
@roles_required(["admin"])
def deleted_orders():
    page, per_page = parse_pagination(request)
    orders, total, total_pages = OrderService.get_deleted_orders(page, per_page, **_filters())
    return jsonify(_page(orders, total, total_pages, page)), 200


@bp.get("/daily")
@jwt_required()
def daily_orders():
    orders = OrderService.get_daily_orders(day_arg(request.args))
    return jsonify([o.to_dict() for o in orders]), 200


@bp.get("/client/<int:client_id>")
@jwt_required()
def orders_by_client(client_id):
    return jsonify([o.to_dict() for o in OrderService.get_orders_by_client_id(client_id)]), 200


@bp.get("/service-order/<service_order>")
@jwt_required()
def orders_by_service_order(service_order):
    orders = OrderService.get_orders_by_service_order(service_order)
    return jsonify([o.to_dict() for o in orders]), 200


@bp.get("/<int:order_id>")
@jwt_required()
def get_order(order_id):
    return jsonify(OrderService.get_order_by_id(order_id).to_dict()), 200


@bp.put("/<int:order_id>")
@roles_required(["admin", "employee"])
def update_order(order_id):
    data = request.get_json() or {}
    return jsonify(OrderService.update_order(order_id, data).to_dict()), 200


@bp.put("/<int:order_id>/status")
@roles_required(["admin", "employee"])
def update_order_status(order_id):
    data = request.get_json() or {}
    order = OrderService.update_order_status(order_id, data.get("status"), current_user_id())
    return jsonify(order.to_dict()), 200


@bp.put("/<int:order_id>/laboratory")
@roles_required(["admin", "employee"])
def update_order_laboratory(order_id):
    data = request.get_json() or {}
    order = OrderService.update_order_laboratory(order_id, data.get("laboratory_id"))
    return jsonify(order.to_dict()), 200


@bp.post("/<int:order_id>/cancel")
@roles_required(["admin", "employee"])
def cancel_order(order_id):
    return jsonify(OrderService.cancel_order(order_id, current_user_id()).to_dict()), 200


@bp.delete("/<int:order_id>")
@roles_required(["admin"])
def delete_order(order_id):
    order = OrderService.soft_delete_order(order_id, current_user_id())
    return jsonify({"message": "Pedido eliminado", "order": order.to_dict()}), 200


@bp.get("/<int:order_id>/payments")
@jwt_required()
def order_payments(order_id):
    return jsonify([p.to_dict() for p in OrderService.get_order_payments(order_id)]), 200


@bp.get("/<int:order_id>/payment-status")
@jwt_required()
def order_payment_status(order_id):
    return jsonify(OrderService.get_payment_status_summary(order_id)), 200
