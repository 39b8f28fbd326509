# optica/services/cash_register_service.py
from collections import defaultdict
from datetime import datetime

from flask import current_app

from optica.errors.exceptions import CashRegisterError, NotFoundError
from optica.repositories.cash_register_repo import CashRegisterRepo
from optica.repositories.payment_repo import PaymentRepo
from optica.utils.dates import day_bounds
from optica.utils.money import to_decimal, money, brl, ZERO
from optica.utils.transaction import atomic

CURRENT_KEY = "current_register"

# método de pago -> columna de ventas de la caja
SALES_BUCKETS = {
    "cash": "sales_cash",
    "credit": "sales_credit",
    "debit": "sales_debit",
    "pix": "sales_pix",
    "check": "sales_check",
}


def _cache():
    return current_app.extensions["register_cache"]


def _register_key(register_id):
    return f"register_{register_id}"


def invalidate_register_cache(register_id=None):
    keys = [CURRENT_KEY]
    if register_id is not None:
        keys.append(_register_key(register_id))
    _cache().delete(*keys)


class CashRegisterService:

    # ---------------------- abrir / cerrar ----------------------

    @staticmethod
    def open_register(opening_balance, user_id, observations=None):
        balance = to_decimal(opening_balance, "opening_balance", CashRegisterError)

        current = CashRegisterRepo.find_open()
        if current:
            raise CashRegisterError(f"Já existe um caixa aberto (ID: {current.id})", 409)
        if balance < 0:
            raise CashRegisterError("El saldo inicial no puede ser negativo")

        with atomic("abriendo caja"):
            register = CashRegisterRepo.create(
                opening_date=datetime.now(),
                opening_balance=balance,
                current_balance=balance,
                status="open",
                sales_total=ZERO, sales_cash=ZERO, sales_credit=ZERO,
                sales_debit=ZERO, sales_pix=ZERO, sales_check=ZERO,
                payments_received=ZERO, payments_made=ZERO,
                opened_by=int(user_id),
                observations=observations,
            )

        invalidate_register_cache(register.id)
        current_app.logger.info(f"Caja {register.id} abierta por usuario {user_id} con {brl(balance)}")
        return register

    @staticmethod
    def close_register(closing_balance, user_id, observations=None):
        balance = to_decimal(closing_balance, "closing_balance", CashRegisterError)

        register = CashRegisterRepo.find_open()
        if not register:
            raise CashRegisterError("No hay caja abierta para cerrar", 404)
        if balance < 0:
            raise CashRegisterError("El saldo de cierre no puede ser negativo")

        difference = balance - (register.current_balance or ZERO)
        notes = [n for n in (register.observations, observations) if n]
        notes.append(f"Diferença de caixa: {brl(difference)}")

        with atomic("cerrando caja"):
            register.closing_balance = balance
            register.closing_date = datetime.now()
            register.closed_by = int(user_id)
            register.status = "closed"
            register.observations = "\n".join(notes)

        invalidate_register_cache(register.id)
        current_app.logger.info(
            f"Caja {register.id} cerrada por usuario {user_id}; diferencia {brl(difference)}"
        )
        return register, difference

    # ---------------------- consultas (con cache) ----------------------

    @staticmethod
    def get_current_register():
        cached = _cache().get(CURRENT_KEY)
        if cached is not None:
            return cached
        register = CashRegisterRepo.find_open()
        if not register:
            raise NotFoundError("No hay caja abierta")
        data = register.to_dict()
        _cache().set(CURRENT_KEY, data)
        return data

    @staticmethod
    def get_register_by_id(register_id):
        key = _register_key(register_id)
        cached = _cache().get(key)
        if cached is not None:
            return cached
        register = CashRegisterRepo.get_by_id(register_id)
        if not register:
            raise NotFoundError("Caja no encontrada")
        data = register.to_dict()
        _cache().set(key, data)
        return data

    @staticmethod
    def get_all_registers(page=1, per_page=10, status=None, start_date=None, end_date=None, search=None):
        registers, total, total_pages = CashRegisterRepo.find_all(
            page, per_page, status=status, start_date=start_date, end_date=end_date, search=search,
        )
        return {
            "registers": [r.to_dict() for r in registers],
            "total": total,
            "page": page,
            "total_pages": total_pages,
        }

    @staticmethod
    def get_register_summary(register_id):
        register = CashRegisterRepo.get_by_id(register_id)
        if not register:
            raise NotFoundError("Caja no encontrada")

        payments = [p for p in PaymentRepo.find_by_register(register.id) if p.status != "cancelled"]

        def _group(kind):
            rows = [p for p in payments if p.type == kind]
            by_method = defaultdict(lambda: ZERO)
            for p in rows:
                by_method[p.method] += p.amount
            return {
                "count": len(rows),
                "total": money(sum((p.amount for p in rows), ZERO)),
                "by_method": {m: money(v) for m, v in by_method.items()},
            }

        expenses = _group("expense")
        return {
            "register": register.to_dict(),
            "sales": _group("sale"),
            "debt_payments": _group("debt_payment"),
            "expenses": {"count": expenses["count"], "total": expenses["total"]},
        }

    @staticmethod
    def get_daily_summary(day):
        start, end = day_bounds(day)
        registers = CashRegisterRepo.find_opened_between(start, end)
        if not registers:
            raise NotFoundError(f"No hay cajas para la fecha {start.date().isoformat()}")

        def _sum(attr):
            return money(sum((getattr(r, attr) or ZERO for r in registers), ZERO))

        expenses = [
            p for p in PaymentRepo.find_list(type="expense", start_date=start, end_date=end)
            if p.status != "cancelled"
        ]
        return {
            "date": start.date().isoformat(),
            "registers": [r.id for r in registers],
            "open_registers": sum(1 for r in registers if r.status == "open"),
            "opening_balance": _sum("opening_balance"),
            "current_balance": _sum("current_balance"),
            "closing_balance": _sum("closing_balance"),
            "sales": {
                "total": _sum("sales_total"),
                "cash": _sum("sales_cash"),
                "credit": _sum("sales_credit"),
                "debit": _sum("sales_debit"),
                "pix": _sum("sales_pix"),
                "check": _sum("sales_check"),
            },
            "payments": {
                "received": _sum("payments_received"),
                "made": _sum("payments_made"),
            },
            "expenses": {
                "count": len(expenses),
                "total": money(sum((p.amount for p in expenses), ZERO)),
            },
        }

    # ---------------------- borrado lógico ----------------------

    @staticmethod
    def soft_delete_register(register_id, user_id):
        register = CashRegisterRepo.get_by_id(register_id)
        if not register:
            raise NotFoundError("Caja no encontrada")
        if register.status == "open":
            raise CashRegisterError("No se puede eliminar una caja abierta")

        with atomic("eliminando caja"):
            register.mark_deleted(user_id)

        invalidate_register_cache(register.id)
        current_app.logger.info(f"Caja {register.id} eliminada por usuario {user_id}")
        return register

    @staticmethod
    def get_deleted_registers(page=1, per_page=10):
        registers, total, total_pages = CashRegisterRepo.find_all(page, per_page, deleted=True)
        return {
            "registers": [r.to_dict() for r in registers],
            "total": total,
            "page": page,
            "total_pages": total_pages,
        }

    # ---------------------- totales por pago ----------------------

    @staticmethod
    def update_sales_and_payments(register, payment_type, method, amount, reverse=False):
        """Aplica (o revierte) un pago sobre los totales de la caja. No hace commit."""
        amount = abs(to_decimal(amount, "amount", CashRegisterError))
        delta = -amount if reverse else amount

        def _bump(attr):
            value = (getattr(register, attr) or ZERO) + delta
            setattr(register, attr, max(value, ZERO) if reverse else value)

        if payment_type == "sale":
            register.current_balance = (register.current_balance or ZERO) + delta
            _bump("sales_total")
            bucket = SALES_BUCKETS.get(method)
            if bucket:
                _bump(bucket)
        elif payment_type == "debt_payment":
            register.current_balance = (register.current_balance or ZERO) + delta
            _bump("payments_received")
        elif payment_type == "expense":
            register.current_balance = (register.current_balance or ZERO) - delta
            _bump("payments_made")
        else:
            raise CashRegisterError(f"Tipo de pago inválido: {payment_type}")

        invalidate_register_cache(register.id)
        return register
