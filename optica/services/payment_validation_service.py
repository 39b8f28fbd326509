# optica/services/payment_validation_service.py
from optica.errors.exceptions import PaymentValidationError, NotFoundError
from optica.models.catalog import PAYMENT_TYPES, PAYMENT_METHODS
from optica.repositories.cash_register_repo import CashRegisterRepo
from optica.repositories.order_repo import OrderRepo
from optica.repositories.user_repo import UserRepo
from optica.repositories.legacy_client_repo import LegacyClientRepo
from optica.utils.dates import parse_datetime
from optica.utils.ids import to_id
from optica.utils.money import to_decimal

# etiquetas usadas en la tienda -> método interno
METHOD_ALIASES = {
    "cartao_credito": "credit",
    "cartao_debito": "debit",
    "dinheiro": "cash",
    "pix": "pix",
    "boleto": "bank_slip",
    "boleto_sicredi": "bank_slip",
    "promissoria": "promissory_note",
    "cheque": "check",
    "installment": "credit",
}

INSTALLMENT_METHODS = ("credit", "installment")


class PaymentValidationService:

    @staticmethod
    def normalize_payment_method(method):
        method = (method or "").strip().lower()
        return METHOD_ALIASES.get(method, method)

    @staticmethod
    def is_installment_payment_method(method):
        return method in INSTALLMENT_METHODS

    @staticmethod
    def validate_amount(amount):
        value = to_decimal(amount, "amount", PaymentValidationError)
        if value <= 0:
            raise PaymentValidationError("El valor del pago debe ser mayor que cero")
        return value

    @staticmethod
    def validate_and_get_open_register():
        register = CashRegisterRepo.find_open()
        if not register:
            raise PaymentValidationError("No hay caja abierta para registrar el pago")
        return register

    @staticmethod
    def validate_order(order_id):
        order = OrderRepo.get_by_id(to_id(order_id, "order_id", PaymentValidationError))
        if not order:
            raise NotFoundError("Pedido no encontrado")
        if order.status == "cancelled":
            raise PaymentValidationError("No se puede registrar pago para un pedido cancelado")
        return order

    @staticmethod
    def validate_customer(customer_id):
        customer = UserRepo.get_by_id(to_id(customer_id, "customer_id", PaymentValidationError))
        if not customer:
            raise NotFoundError("Cliente no encontrado")
        return customer

    @staticmethod
    def validate_legacy_client(legacy_client_id):
        client_id = to_id(legacy_client_id, "legacy_client_id", PaymentValidationError)
        client = LegacyClientRepo.get_by_id(client_id)
        if not client:
            raise NotFoundError("Cliente legado no encontrado")
        return client

    @staticmethod
    def validate_installments(total, value, current=1):
        try:
            total = int(total)
            current = int(current if current is not None else 1)
        except (TypeError, ValueError):
            raise PaymentValidationError("Datos de cuotas inválidos")
        value = to_decimal(value, "installments.value", PaymentValidationError)
        if total < 2:
            raise PaymentValidationError("El número de cuotas debe ser al menos 2")
        if value <= 0:
            raise PaymentValidationError("El valor de la cuota debe ser mayor que cero")
        if current < 1 or current > total:
            raise PaymentValidationError("La cuota actual debe estar entre 1 y el total de cuotas")
        return total, value, current

    @staticmethod
    def validate_client_debt_data(client_debt):
        """generate_debt exige cuotas y vencimientos en la misma cantidad."""
        if not client_debt or not client_debt.get("generate_debt"):
            return None
        installments = client_debt.get("installments") or {}
        if not installments.get("total") or installments.get("value") in (None, ""):
            raise PaymentValidationError("Datos de cuotas son obligatorios cuando se genera deuda")
        due_dates = client_debt.get("due_dates") or []
        if not due_dates:
            raise PaymentValidationError("Fechas de vencimiento son obligatorias cuando se genera deuda")
        try:
            total = int(installments["total"])
        except (TypeError, ValueError):
            raise PaymentValidationError("Número de cuotas inválido")
        if total < 1:
            raise PaymentValidationError("El número de cuotas debe ser mayor que cero")
        value = to_decimal(installments["value"], "installments.value", PaymentValidationError)
        if value <= 0:
            raise PaymentValidationError("El valor de la cuota debe ser mayor que cero")
        if len(due_dates) != total:
            raise PaymentValidationError(
                "La cantidad de fechas de vencimiento debe coincidir con el número de cuotas"
            )
        try:
            dates = [parse_datetime(d, "due_date").date().isoformat() for d in due_dates]
        except (ValueError, AttributeError):
            raise PaymentValidationError("Fecha de vencimiento inválida")
        return {"total": total, "value": value, "due_dates": dates}

    @staticmethod
    def validate_method_data(method, data):
        if method == "bank_slip" and not (data.get("bank_slip") or {}).get("code"):
            raise PaymentValidationError("Código del boleto es obligatorio")
        if method == "promissory_note" and not (data.get("promissory_note") or {}).get("number"):
            raise PaymentValidationError("Número del pagaré es obligatorio")
        if method == "check":
            check = data.get("check") or {}
            if not check.get("bank") or not check.get("check_number"):
                raise PaymentValidationError("Banco y número del cheque son obligatorios")

    @staticmethod
    def validate_payment(data):
        """Valida el payload completo; devuelve la caja abierta."""
        payment_type = data.get("type")
        if payment_type not in PAYMENT_TYPES:
            raise PaymentValidationError(f"Tipo de pago inválido: {payment_type}")
        method = PaymentValidationService.normalize_payment_method(data.get("payment_method"))
        if method not in PAYMENT_METHODS:
            raise PaymentValidationError(f"Método de pago inválido: {data.get('payment_method')}")

        PaymentValidationService.validate_amount(data.get("amount"))
        register = PaymentValidationService.validate_and_get_open_register()

        if data.get("order_id"):
            PaymentValidationService.validate_order(data["order_id"])
        if data.get("customer_id"):
            PaymentValidationService.validate_customer(data["customer_id"])
        if data.get("legacy_client_id"):
            PaymentValidationService.validate_legacy_client(data["legacy_client_id"])
        if payment_type == "debt_payment" and not (
            data.get("customer_id") or data.get("legacy_client_id") or data.get("order_id")
        ):
            raise PaymentValidationError("Pago de deuda exige cliente, cliente legado o pedido")

        installments = data.get("installments")
        if installments and PaymentValidationService.is_installment_payment_method(method):
            PaymentValidationService.validate_installments(
                installments.get("total"), installments.get("value"), installments.get("current", 1),
            )

        PaymentValidationService.validate_client_debt_data(data.get("client_debt"))
        PaymentValidationService.validate_method_data(method, data)
        return register
