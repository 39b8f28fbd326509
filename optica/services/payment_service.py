# optica/services/payment_service.py
from collections import defaultdict
from datetime import datetime

from flask import current_app

from optica.errors.exceptions import PaymentError, NotFoundError
from optica.repositories.payment_repo import PaymentRepo
from optica.services.cash_register_service import CashRegisterService
from optica.services.payment_validation_service import PaymentValidationService
from optica.services.payment_status_service import PaymentStatusService
from optica.services.payment_calculation_service import PaymentCalculationService
from optica.utils.dates import parse_datetime, day_bounds
from optica.utils.money import to_decimal, money, ZERO
from optica.utils.transaction import atomic


def _payment_fields(data, method, amount):
    """Payload validado -> columnas de Payment."""
    fields = {
        "amount": amount,
        "date": parse_datetime(data.get("date")) or datetime.now(),
        "type": data["type"],
        "method": method,
        "customer_id": data.get("customer_id"),
        "legacy_client_id": data.get("legacy_client_id"),
        "order_id": data.get("order_id"),
        "category": data.get("category"),
        "description": data.get("description"),
        "gateway_payment_id": data.get("gateway_payment_id"),
    }

    installments = data.get("installments")
    if installments and PaymentValidationService.is_installment_payment_method(method):
        fields["installments_current"] = int(installments.get("current", 1))
        fields["installments_total"] = int(installments["total"])
        fields["installments_value"] = to_decimal(installments["value"], "installments.value", PaymentError)

    debt = PaymentValidationService.validate_client_debt_data(data.get("client_debt"))
    if debt:
        fields["generate_debt"] = True
        fields["debt_installments_total"] = debt["total"]
        fields["debt_installment_value"] = debt["value"]
        fields["due_dates"] = debt["due_dates"]

    if method == "bank_slip":
        slip = data.get("bank_slip") or {}
        fields["bank_slip_code"] = slip.get("code")
        fields["bank_slip_bank"] = slip.get("bank")
    elif method == "promissory_note":
        fields["promissory_note_number"] = (data.get("promissory_note") or {}).get("number")
    elif method == "check":
        check = data.get("check") or {}
        fields.update(
            check_bank=check.get("bank"),
            check_number=check.get("check_number"),
            check_date=parse_datetime(check.get("check_date")),
            check_account_holder=check.get("account_holder"),
            check_branch=check.get("branch"),
            check_account_number=check.get("account_number"),
            check_presentation_date=parse_datetime(check.get("presentation_date")),
            check_compensation_status="pending",
        )
    return fields


class PaymentService:

    @staticmethod
    def create_payment(data, user_id):
        try:
            register = PaymentValidationService.validate_payment(data)
            method = PaymentValidationService.normalize_payment_method(data.get("payment_method"))
            amount = PaymentValidationService.validate_amount(data.get("amount"))
            fields = _payment_fields(data, method, amount)
        except ValueError as e:
            raise PaymentError(str(e))

        # cheque queda pendiente hasta compensar
        status = "pending" if method == "check" else "completed"

        with atomic("registrando pago"):
            payment = PaymentRepo.create(
                cash_register_id=register.id,
                created_by=int(user_id),
                status=status,
                **fields,
            )
            CashRegisterService.update_sales_and_payments(register, payment.type, method, amount)
            if status == "completed":
                PaymentStatusService.settle_payment(payment)

        current_app.logger.info(
            f"Pago {payment.id} ({payment.type}/{payment.method}) de {amount} registrado en caja {register.id}"
        )
        return payment

    @staticmethod
    def get_payment_by_id(payment_id):
        payment = PaymentRepo.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Pago no encontrado")
        return payment

    @staticmethod
    def get_all_payments(page=1, per_page=10, **filters):
        payments, total, total_pages = PaymentRepo.find_all(page, per_page, **filters)
        if not payments:
            raise NotFoundError("No se encontraron pagos")
        return payments, total, total_pages

    @staticmethod
    def get_daily_payments(day, payment_type=None):
        start, end = day_bounds(day)
        return PaymentRepo.find_list(type=payment_type, start_date=start, end_date=end)

    @staticmethod
    def cancel_payment(payment_id, user_id):
        payment = PaymentService.get_payment_by_id(payment_id)
        if payment.status == "cancelled":
            raise PaymentError("El pago ya fue cancelado")
        register = payment.cash_register
        if register is None or register.status != "open":
            raise PaymentError("No se puede cancelar un pago de una caja cerrada")

        with atomic("cancelando pago"):
            CashRegisterService.update_sales_and_payments(
                register, payment.type, payment.method, payment.amount, reverse=True,
            )
            if payment.status == "completed":
                PaymentStatusService.unsettle_payment(payment)
            payment.status = "cancelled"
            if payment.method == "check" and payment.check_compensation_status == "pending":
                payment.check_compensation_status = None
            note = f"Cancelado por usuário {user_id}"
            payment.description = f"{payment.description} - {note}" if payment.description else note

        current_app.logger.info(f"Pago {payment.id} cancelado por usuario {user_id}")
        return payment

    @staticmethod
    def soft_delete_payment(payment_id, user_id):
        payment = PaymentService.get_payment_by_id(payment_id)
        if payment.status != "cancelled" and payment.cash_register.status == "open":
            raise PaymentError("Cancele el pago antes de eliminarlo")
        with atomic("eliminando pago"):
            payment.mark_deleted(user_id)
        current_app.logger.info(f"Pago {payment.id} eliminado por usuario {user_id}")
        return payment

    @staticmethod
    def get_deleted_payments(page=1, per_page=10, **filters):
        return PaymentRepo.find_all(page, per_page, deleted=True, **filters)

    @staticmethod
    def get_daily_financial_report(day):
        start, _ = day_bounds(day)
        payments = [p for p in PaymentService.get_daily_payments(start) if p.status != "cancelled"]
        by_type = PaymentCalculationService.calculate_payment_type_totals(payments)
        by_method = PaymentCalculationService.calculate_payment_method_totals(payments)

        counts = defaultdict(int)
        expenses_by_category = defaultdict(lambda: ZERO)
        for p in payments:
            counts[p.type] += 1
            if p.type == "expense":
                expenses_by_category[p.category or "sin_categoria"] += p.amount

        daily_balance = (
            to_decimal(by_type["total_sales"])
            + to_decimal(by_type["total_debt_payments"])
            - to_decimal(by_type["total_expenses"])
        )
        return {
            "date": start.date().isoformat(),
            **by_type,
            "by_method": by_method,
            "counts": dict(counts),
            "expenses_by_category": {k: money(v) for k, v in expenses_by_category.items()},
            "daily_balance": money(daily_balance),
        }
