# optica/services/payment_calculation_service.py
from flask import current_app

from optica.errors.exceptions import NotFoundError, PaymentError
from optica.repositories.order_repo import OrderRepo
from optica.repositories.user_repo import UserRepo
from optica.repositories.legacy_client_repo import LegacyClientRepo
from optica.utils.ids import to_id
from optica.utils.money import to_decimal, money, ZERO
from optica.utils.transaction import atomic

# método -> clave del resumen por método
METHOD_TOTAL_KEYS = {
    "credit": "total_by_credit_card",
    "debit": "total_by_debit_card",
    "cash": "total_by_cash",
    "pix": "total_by_pix",
    "check": "total_by_check",
    "bank_slip": "total_by_bank_slip",
    "promissory_note": "total_by_promissory_note",
    "mercado_pago": "total_by_mercado_pago",
}

TYPE_TOTAL_KEYS = {
    "sale": "total_sales",
    "debt_payment": "total_debt_payments",
    "expense": "total_expenses",
}


def order_total_paid(order):
    return sum((h.amount for h in order.payment_history), ZERO)


def payment_status_for(final_price, total_paid):
    if total_paid >= (final_price or ZERO):
        return "paid"
    if total_paid > 0:
        return "partially_paid"
    return "pending"


class PaymentCalculationService:

    @staticmethod
    def calculate_client_total_debt(client_id):
        total = ZERO
        for order in OrderRepo.find_active_for_debtor(client_id):
            remaining = (order.final_price or ZERO) - order_total_paid(order)
            if remaining > 0:
                total += remaining
        return total

    @staticmethod
    def recalculate_client_debts(client_id=None):
        client_id = to_id(client_id, "client_id", PaymentError)
        if client_id is not None:
            client = UserRepo.get_by_id(client_id)
            if not client:
                raise NotFoundError("Cliente no encontrado")
            clients = [client]
        else:
            clients = UserRepo.find_customers()

        changes = []
        with atomic("recalculando deudas"):
            for client in clients:
                old_debt = client.debts or ZERO
                new_debt = PaymentCalculationService.calculate_client_total_debt(client.id)
                if old_debt != new_debt:
                    client.debts = new_debt
                    changes.append({
                        "id": client.id,
                        "old_debt": money(old_debt),
                        "new_debt": money(new_debt),
                        "diff": money(new_debt - old_debt),
                    })

        current_app.logger.info(f"Recalculo de deudas: {len(changes)} clientes actualizados")
        return {"updated": len(changes), "clients": changes}

    @staticmethod
    def update_client_debt(customer_id=None, legacy_client_id=None, amount=0):
        """Suma (o resta, si amount < 0) a la deuda; nunca queda negativa. No hace commit."""
        amount = to_decimal(amount, "amount", PaymentError, default=0)
        if amount == 0:
            return None
        if customer_id:
            customer = UserRepo.get_by_id(customer_id)
            if not customer:
                raise NotFoundError("Cliente no encontrado")
            customer.debts = max((customer.debts or ZERO) + amount, ZERO)
            return customer
        if legacy_client_id:
            client = LegacyClientRepo.get_by_id(legacy_client_id)
            if not client:
                raise NotFoundError("Cliente legado no encontrado")
            client.total_debt = max((client.total_debt or ZERO) + amount, ZERO)
            return client
        return None

    @staticmethod
    def calculate_payment_status_summary(order_id):
        order = OrderRepo.get_by_id(order_id)
        if not order:
            raise NotFoundError("Pedido no encontrado")
        total_paid = order_total_paid(order)
        final_price = order.final_price or ZERO
        last = order.payment_history[-1].date if order.payment_history else None
        return {
            "total_price": money(final_price),
            "total_paid": money(total_paid),
            "remaining_amount": money(max(final_price - total_paid, ZERO)),
            "payment_status": payment_status_for(final_price, total_paid),
            "last_payment_date": last.isoformat() if last else None,
        }

    @staticmethod
    def calculate_payment_method_totals(payments):
        totals = {key: ZERO for key in METHOD_TOTAL_KEYS.values()}
        for p in payments:
            if p.status == "cancelled":
                continue
            key = METHOD_TOTAL_KEYS.get(p.method)
            if key:
                totals[key] += p.amount
        return {k: money(v) for k, v in totals.items()}

    @staticmethod
    def calculate_payment_type_totals(payments):
        totals = {key: ZERO for key in TYPE_TOTAL_KEYS.values()}
        for p in payments:
            if p.status == "cancelled":
                continue
            totals[TYPE_TOTAL_KEYS[p.type]] += p.amount
        return {k: money(v) for k, v in totals.items()}
