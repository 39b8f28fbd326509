# optica/api/mercado_pago.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from optica.errors.exceptions import ServiceError
from optica.extensions import db
from optica.services.mercado_pago_service import MercadoPagoService

bp = Blueprint("mercado_pago", __name__)


@bp.post("/preference/<int:order_id>")
@jwt_required()
def create_preference(order_id):
    data = request.get_json(silent=True) or {}
    base_url = data.get("base_url") or current_app.config["HOST_URL"]
    return jsonify(MercadoPagoService.create_payment_preference(order_id, base_url)), 201


@bp.post("/webhook")
def webhook():
    # Mercado Pago reintenta ante cualquier respuesta != 200
    body = request.get_json(silent=True) or {}
    if not body and request.args.get("type"):
        body = {"type": request.args.get("type"), "data": {"id": request.args.get("data.id")}}
    try:
        MercadoPagoService.process_webhook(body)
    except ServiceError as e:
        current_app.logger.error(f"Webhook Mercado Pago con error: {e.message}")
        return "Error", 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Webhook Mercado Pago con error inesperado")
        return "Error", 200
    return "OK", 200


@bp.get("/payment/<payment_id>")
@jwt_required()
def payment_info(payment_id):
    return jsonify(MercadoPagoService.get_payment_info(payment_id)), 200
