# optica/services/payment_status_service.py
from flask import current_app

from optica.errors.exceptions import PaymentError, NotFoundError
from optica.models.catalog import OrderPaymentHistory, CHECK_STATUSES
from optica.repositories.order_repo import OrderRepo
from optica.repositories.payment_repo import PaymentRepo
from optica.services.cash_register_service import CashRegisterService
from optica.services.legacy_client_service import LegacyClientService
from optica.services.payment_calculation_service import (
    PaymentCalculationService, order_total_paid, payment_status_for,
)
from optica.utils.transaction import atomic


class PaymentStatusService:

    # ---------------------- estado de pago del pedido ----------------------

    @staticmethod
    def update_order_payment_status(order):
        if not hasattr(order, "payment_history"):
            order = OrderRepo.get_by_id(order, include_deleted=True)
            if not order:
                raise NotFoundError("Pedido no encontrado")
        order.payment_status = payment_status_for(order.final_price, order_total_paid(order))
        return order

    @staticmethod
    def add_payment_history(order, payment):
        order.payment_history.append(OrderPaymentHistory(
            payment_id=payment.id,
            amount=payment.amount,
            date=payment.date,
            method=payment.method,
        ))
        return PaymentStatusService.update_order_payment_status(order)

    @staticmethod
    def remove_payment_history(order, payment):
        order.payment_history = [h for h in order.payment_history if h.payment_id != payment.id]
        return PaymentStatusService.update_order_payment_status(order)

    # ---------------------- liquidación de pagos ----------------------

    @staticmethod
    def settle_payment(payment):
        """Efectos de un pago completado sobre pedido y deudas. No hace commit."""
        if payment.type == "expense" or payment.generate_debt:
            return
        order = payment.order
        if order is not None:
            PaymentStatusService.add_payment_history(order, payment)
            # pedido cancelado: su saldo ya salió de la deuda
            if order.status != "cancelled":
                PaymentCalculationService.update_client_debt(customer_id=order.debtor_id, amount=-payment.amount)
        elif payment.type == "debt_payment":
            if payment.legacy_client_id:
                LegacyClientService.update_debt(payment.legacy_client_id, -payment.amount, payment.id)
            elif payment.customer_id:
                PaymentCalculationService.update_client_debt(customer_id=payment.customer_id, amount=-payment.amount)

    @staticmethod
    def unsettle_payment(payment):
        if payment.type == "expense" or payment.generate_debt:
            return
        order = payment.order
        if order is not None:
            PaymentStatusService.remove_payment_history(order, payment)
            if order.status != "cancelled":
                PaymentCalculationService.update_client_debt(customer_id=order.debtor_id, amount=payment.amount)
        elif payment.type == "debt_payment":
            if payment.legacy_client_id:
                LegacyClientService.update_debt(payment.legacy_client_id, payment.amount)
                LegacyClientService.remove_payment(payment.legacy_client_id, payment.id)
            elif payment.customer_id:
                PaymentCalculationService.update_client_debt(customer_id=payment.customer_id, amount=payment.amount)

    # ---------------------- cheques ----------------------

    @staticmethod
    def update_check_compensation_status(payment_id, status, reason=None, user_id=None):
        payment = PaymentRepo.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Pago no encontrado")
        if payment.method != "check":
            raise PaymentError("El pago no es un cheque")
        if status not in CHECK_STATUSES or status == "pending":
            raise PaymentError("Estado de compensación inválido")
        if payment.check_compensation_status != "pending" or payment.status != "pending":
            raise PaymentError(f"El cheque ya fue procesado ({payment.check_compensation_status})")
        if status == "rejected" and not (reason or "").strip():
            raise PaymentError("Motivo de rechazo es obligatorio")

        with atomic("actualizando compensación de cheque"):
            payment.check_compensation_status = status
            if status == "compensated":
                payment.status = "completed"
                PaymentStatusService.settle_payment(payment)
            else:
                payment.status = "cancelled"
                payment.check_rejection_reason = reason.strip()
                payment.description = f"{payment.description or ''} - Rejeitado: {reason.strip()}".strip(" -")
                register = payment.cash_register
                # caja cerrada: los totales ya quedaron fijos
                if register.status == "open":
                    CashRegisterService.update_sales_and_payments(
                        register, payment.type, payment.method, payment.amount, reverse=True,
                    )

        current_app.logger.info(f"Cheque {payment.id} marcado como {status} por usuario {user_id}")
        return payment

    @staticmethod
    def get_checks_by_status(status=None, start_date=None, end_date=None):
        if status and status not in CHECK_STATUSES:
            raise PaymentError("Estado de compensación inválido")
        return PaymentRepo.find_checks(status, start_date, end_date)
