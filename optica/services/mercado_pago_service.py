# optica/services/mercado_pago_service.py
from flask import current_app
from sqlalchemy.exc import IntegrityError

from optica.errors.exceptions import MercadoPagoError, NotFoundError
from optica.repositories.order_repo import OrderRepo
from optica.repositories.payment_repo import PaymentRepo
from optica.services.payment_service import PaymentService
from optica.services.payment_validation_service import PaymentValidationService
from optica.services.payment_calculation_service import order_total_paid
from optica.utils.ids import to_id
from optica.utils.mercado_pago_api import get_mercado_pago_api
from optica.utils.money import to_decimal, money, ZERO

# payment_method_id / payment_type_id de Mercado Pago -> método interno
GATEWAY_METHODS = {
    "pix": "pix",
    "credit_card": "credit",
    "debit_card": "debit",
    "ticket": "bank_slip",
    "bank_transfer": "bank_slip",
}


def map_gateway_method(info):
    for key in ("payment_method_id", "payment_type_id"):
        method = GATEWAY_METHODS.get(info.get(key) or "")
        if method:
            return method
    return "cash"


class MercadoPagoService:

    @staticmethod
    def _items_for(order):
        remaining = (order.final_price or ZERO) - order_total_paid(order)
        if remaining <= 0:
            raise MercadoPagoError("El pedido ya está pago", 400)

        items = [{
            "id": str(p.id),
            "title": p.name,
            "description": p.description or p.name,
            "quantity": 1,
            "currency_id": "BRL",
            "unit_price": money(p.sell_price),
        } for p in order.products]
        # con descuento o pagos parciales se cobra el saldo en un único ítem
        if sum((p.sell_price or ZERO for p in order.products), ZERO) != remaining:
            items = [{
                "id": str(order.id),
                "title": f"Pedido O.S. {order.service_order}",
                "description": ", ".join(p.name for p in order.products),
                "quantity": 1,
                "currency_id": "BRL",
                "unit_price": money(remaining),
            }]
        return items

    @staticmethod
    def create_payment_preference(order_id, base_url):
        PaymentValidationService.validate_and_get_open_register()
        order = PaymentValidationService.validate_order(order_id)
        base_url = (base_url or current_app.config["HOST_URL"]).rstrip("/")

        preference = {
            "items": MercadoPagoService._items_for(order),
            "payer": {"name": order.client.name, "email": order.client.email},
            "external_reference": str(order.id),
            "metadata": {"order_id": str(order.id)},
            "payment_methods": {"installments": max(order.installments or 1, 1)},
            "back_urls": {
                "success": f"{base_url}/payment/success",
                "pending": f"{base_url}/payment/pending",
                "failure": f"{base_url}/payment/failure",
            },
            "notification_url": f"{base_url}/api/mercadopago/webhook",
            "auto_return": "approved",
            "statement_descriptor": current_app.config["MERCADO_PAGO_STATEMENT_DESCRIPTOR"],
        }
        response = get_mercado_pago_api().create_preference(preference)
        current_app.logger.info(f"Preferencia {response.get('id')} creada para pedido {order.id}")
        return {
            "id": response.get("id"),
            "init_point": response.get("init_point"),
            "sandbox_init_point": response.get("sandbox_init_point"),
        }

    @staticmethod
    def get_payment_info(mp_payment_id):
        return get_mercado_pago_api().get_payment(mp_payment_id)

    @staticmethod
    def process_payment(mp_payment_id):
        """Concilia un pago aprobado con el pedido; devuelve el Payment local o None si no aplica."""
        existing = PaymentRepo.get_by_gateway_id(mp_payment_id)
        if existing:
            current_app.logger.info(f"Pago Mercado Pago {mp_payment_id} ya conciliado (pago {existing.id})")
            return existing

        info = MercadoPagoService.get_payment_info(mp_payment_id)
        status = info.get("status")
        if status != "approved":
            current_app.logger.info(f"Pago Mercado Pago {mp_payment_id} con estado {status}; se ignora")
            return None

        reference = info.get("external_reference") or (info.get("metadata") or {}).get("order_id")
        order_id = to_id(reference, "external_reference", MercadoPagoError)
        if not order_id:
            raise MercadoPagoError("Pago sin referencia de pedido", 400)
        order = OrderRepo.get_by_id(order_id)
        if not order:
            raise NotFoundError(f"Pedido {order_id} no encontrado")

        method = map_gateway_method(info)
        amount = to_decimal(info.get("transaction_amount"), "transaction_amount", MercadoPagoError)
        data = {
            "type": "sale",
            "payment_method": method,
            "amount": amount,
            "order_id": order.id,
            "customer_id": order.client_id,
            "description": f"Pagamento via Mercado Pago - ID: {mp_payment_id}",
            "gateway_payment_id": str(mp_payment_id),
        }
        installments = int(info.get("installments") or 1)
        if method == "credit" and installments > 1:
            value = (info.get("transaction_details") or {}).get("installment_amount")
            data["installments"] = {
                "current": 1,
                "total": installments,
                "value": value if value else money(amount / installments),
            }
        if method == "bank_slip":
            data["bank_slip"] = {"code": str(mp_payment_id), "bank": "Mercado Pago"}

        try:
            payment = PaymentService.create_payment(data, user_id=order.employee_id)
        except IntegrityError:
            # otra notificación del mismo pago ganó la carrera
            existing = PaymentRepo.get_by_gateway_id(mp_payment_id)
            if existing is None:
                raise
            return existing
        current_app.logger.info(f"Pago Mercado Pago {mp_payment_id} conciliado como pago {payment.id}")
        return payment

    @staticmethod
    def process_webhook(body):
        body = body or {}
        event_type = body.get("type") or body.get("topic")
        if event_type != "payment":
            current_app.logger.info(f"Webhook Mercado Pago ignorado (tipo {event_type})")
            return None
        payment_id = (body.get("data") or {}).get("id")
        if not payment_id:
            raise MercadoPagoError("Webhook sin data.id", 400)
        return MercadoPagoService.process_payment(payment_id)
