# optica/services/order_service.py
from datetime import datetime

from flask import current_app

from optica.errors.exceptions import OrderError, NotFoundError
from optica.repositories.order_repo import OrderRepo
from optica.repositories.payment_repo import PaymentRepo
from optica.services.order_validation_service import OrderValidationService
from optica.services.payment_calculation_service import (
    PaymentCalculationService, order_total_paid, payment_status_for,
)
from optica.services.payment_validation_service import PaymentValidationService
from optica.utils.dates import parse_datetime, day_bounds
from optica.utils.money import ZERO
from optica.utils.transaction import atomic

CLOSED_STATUSES = ("delivered", "cancelled")


def _adjust_frame_stock(products, delta):
    for product in products:
        if not product.is_frame or product.stock is None:
            continue
        if delta < 0 and product.stock + delta < 0:
            raise OrderError(f"Sin stock para el producto {product.name}")
        product.stock += delta


class OrderService:

    @staticmethod
    def create_order(data, employee_id=None):
        client = OrderValidationService.validate_client(data.get("client_id"))
        employee = OrderValidationService.validate_employee(data.get("employee_id") or employee_id)
        responsible = None
        if data.get("responsible_client_id"):
            responsible = OrderValidationService.validate_client(
                data["responsible_client_id"], "responsible_client_id",
            )

        products = OrderValidationService.validate_products(data.get("products") or [])
        total_price = data.get("total_price")
        if total_price in (None, ""):
            total_price = sum((p.sell_price or ZERO for p in products), ZERO)
        total, discount, installments, entry = OrderValidationService.validate_financial(
            total_price, data.get("discount"), data.get("installments"), data.get("payment_entry"),
        )

        has_lenses = any(p.is_lens for p in products)
        delivery = OrderValidationService.validate_delivery_date(data.get("delivery_date"), has_lenses)
        prescription = OrderValidationService.validate_prescription(data.get("prescription_data"))
        laboratory = None
        if data.get("laboratory_id"):
            laboratory = OrderValidationService.validate_laboratory(data["laboratory_id"])

        method = PaymentValidationService.normalize_payment_method(data.get("payment_method"))
        if not method:
            raise OrderError("Método de pago es obligatorio")

        try:
            order_date = parse_datetime(data.get("order_date")) or datetime.now()
        except ValueError as e:
            raise OrderError(str(e))

        final_price = total - discount
        with atomic("creando pedido"):
            _adjust_frame_stock(products, -1)
            order = OrderRepo.create(
                products,
                client_id=client.id,
                employee_id=employee.id,
                responsible_client_id=responsible.id if responsible else None,
                laboratory_id=laboratory.id if laboratory else None,
                payment_method=method,
                payment_entry=entry,
                installments=installments,
                order_date=order_date,
                delivery_date=delivery,
                status="pending" if has_lenses else "ready",
                observations=data.get("observations"),
                total_price=total,
                discount=discount,
                final_price=final_price,
                payment_status=payment_status_for(final_price, ZERO),
                service_order=OrderRepo.next_service_order(),
                **prescription,
            )
            PaymentCalculationService.update_client_debt(customer_id=order.debtor_id, amount=final_price)

        current_app.logger.info(
            f"Pedido {order.id} (O.S. {order.service_order}) creado para cliente {client.id}"
        )
        return order

    @staticmethod
    def get_order_by_id(order_id):
        order = OrderRepo.get_by_id(order_id)
        if not order:
            raise NotFoundError("Pedido no encontrado")
        return order

    @staticmethod
    def get_all_orders(page=1, per_page=10, **filters):
        return OrderRepo.find_all(page, per_page, **filters)

    @staticmethod
    def get_orders_by_client_id(client_id):
        OrderValidationService.validate_client(client_id)
        return OrderRepo.find_by_client(client_id)

    @staticmethod
    def get_orders_by_service_order(service_order):
        service_order = str(service_order or "").strip()
        if not service_order:
            raise OrderError("Número de O.S. es obligatorio")
        orders = OrderRepo.find_by_service_order(service_order)
        if not orders:
            raise NotFoundError(f"No hay pedidos con la O.S. {service_order}")
        return orders

    @staticmethod
    def get_daily_orders(day):
        start, end = day_bounds(day)
        return OrderRepo.find_between(start, end)

    @staticmethod
    def get_order_payments(order_id):
        order = OrderService.get_order_by_id(order_id)
        return PaymentRepo.find_list(order_id=order.id)

    @staticmethod
    def get_payment_status_summary(order_id):
        return PaymentCalculationService.calculate_payment_status_summary(order_id)

    # ---------------------- cambios de estado ----------------------

    @staticmethod
    def update_order_status(order_id, status, user_id=None):
        order = OrderService.get_order_by_id(order_id)
        if status == "cancelled":
            return OrderService.cancel_order(order_id, user_id)
        OrderValidationService.validate_status_transition(order, status)
        previous = order.status
        with atomic("actualizando estado del pedido"):
            order.status = status
        current_app.logger.info(f"Pedido {order.id}: {previous} -> {status} (usuario {user_id})")
        return order

    @staticmethod
    def update_order_laboratory(order_id, laboratory_id):
        order = OrderService.get_order_by_id(order_id)
        if order.status in CLOSED_STATUSES:
            raise OrderError("No se puede cambiar el laboratorio de un pedido finalizado")
        laboratory = OrderValidationService.validate_laboratory(laboratory_id)
        with atomic("actualizando laboratorio del pedido"):
            order.laboratory_id = laboratory.id
        return order

    @staticmethod
    def update_order(order_id, data):
        order = OrderService.get_order_by_id(order_id)
        if order.status in CLOSED_STATUSES:
            raise OrderError("No se puede editar un pedido entregado o cancelado")

        total, discount, installments, entry = OrderValidationService.validate_financial(
            data.get("total_price", order.total_price),
            data.get("discount", order.discount),
            data.get("installments", order.installments),
            data.get("payment_entry", order.payment_entry),
        )
        changes = {}
        if "delivery_date" in data:
            changes["delivery_date"] = OrderValidationService.validate_delivery_date(
                data["delivery_date"], order.has_lenses,
            )
        if "prescription_data" in data:
            changes.update(OrderValidationService.validate_prescription(data["prescription_data"]))
        if "observations" in data:
            changes["observations"] = data["observations"]
        if data.get("payment_method"):
            changes["payment_method"] = PaymentValidationService.normalize_payment_method(data["payment_method"])

        old_final = order.final_price or ZERO
        new_final = total - discount
        with atomic("actualizando pedido"):
            for k, v in changes.items():
                setattr(order, k, v)
            order.total_price = total
            order.discount = discount
            order.installments = installments
            order.payment_entry = entry
            order.final_price = new_final
            order.payment_status = payment_status_for(new_final, order_total_paid(order))
            PaymentCalculationService.update_client_debt(
                customer_id=order.debtor_id, amount=new_final - old_final,
            )
        return order

    @staticmethod
    def cancel_order(order_id, user_id=None):
        order = OrderService.get_order_by_id(order_id)
        if order.status == "delivered":
            raise OrderError("No se puede cancelar un pedido ya entregado")
        if order.status == "cancelled":
            raise OrderError("El pedido ya está cancelado")

        remaining = max((order.final_price or ZERO) - order_total_paid(order), ZERO)
        with atomic("cancelando pedido"):
            order.status = "cancelled"
            _adjust_frame_stock(order.products, 1)
            PaymentCalculationService.update_client_debt(customer_id=order.debtor_id, amount=-remaining)

        current_app.logger.info(f"Pedido {order.id} cancelado por usuario {user_id}; deuda -{remaining}")
        return order

    @staticmethod
    def soft_delete_order(order_id, user_id):
        order = OrderService.get_order_by_id(order_id)
        if order.status not in CLOSED_STATUSES:
            raise OrderError("Solo pedidos entregados o cancelados pueden eliminarse")
        with atomic("eliminando pedido"):
            order.mark_deleted(user_id)
        current_app.logger.info(f"Pedido {order.id} eliminado por usuario {user_id}")
        return order

    @staticmethod
    def get_deleted_orders(page=1, per_page=10, **filters):
        return OrderRepo.find_all(page, per_page, deleted=True, **filters)
