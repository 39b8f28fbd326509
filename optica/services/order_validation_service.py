# optica/services/order_validation_service.py
from datetime import datetime

from dateutil.relativedelta import relativedelta

from optica.errors.exceptions import OrderError, NotFoundError
from optica.repositories.user_repo import UserRepo, ProductRepo
from optica.repositories.laboratory_repo import LaboratoryRepo
from optica.utils.dates import parse_datetime
from optica.utils.ids import to_id
from optica.utils.money import to_decimal

# transiciones de estado permitidas
ALLOWED_TRANSITIONS = {
    "pending": ("in_production", "cancelled"),
    "in_production": ("ready", "cancelled"),
    "ready": ("delivered", "cancelled"),
    "delivered": (),
    "cancelled": (),
}


class OrderValidationService:

    @staticmethod
    def validate_client(client_id, field="client_id"):
        client = UserRepo.get_by_id(to_id(client_id, field, OrderError))
        if not client:
            raise NotFoundError("Cliente no encontrado")
        if client.role != "customer":
            raise OrderError("El usuario informado no es un cliente")
        return client

    @staticmethod
    def validate_employee(employee_id):
        employee = UserRepo.get_by_id(to_id(employee_id, "employee_id", OrderError))
        if not employee:
            raise NotFoundError("Empleado no encontrado")
        if employee.role not in ("employee", "admin"):
            raise OrderError("El usuario informado no es empleado")
        return employee

    @staticmethod
    def validate_products(product_ids):
        if not product_ids:
            raise OrderError("El pedido debe tener al menos un producto")
        try:
            ids = list(dict.fromkeys(int(p) for p in product_ids))
        except (TypeError, ValueError):
            raise OrderError("Producto inválido")
        products = ProductRepo.get_by_ids(ids)
        found = {p.id for p in products}
        missing = [pid for pid in ids if pid not in found]
        if missing:
            raise NotFoundError(f"Productos no encontrados: {missing}")
        return products

    @staticmethod
    def validate_financial(total_price, discount, installments, payment_entry):
        total = to_decimal(total_price, "total_price", OrderError)
        discount = to_decimal(discount, "discount", OrderError, default=0)
        entry = to_decimal(payment_entry, "payment_entry", OrderError, default=0)
        try:
            installments = int(installments if installments not in (None, "") else 1)
        except (TypeError, ValueError):
            raise OrderError("Número de cuotas inválido")

        if total <= 0:
            raise OrderError("El precio total debe ser mayor que cero")
        if discount < 0:
            raise OrderError("El descuento no puede ser negativo")
        if discount > total:
            raise OrderError("El descuento no puede ser mayor que el precio total")
        if installments <= 0:
            raise OrderError("El número de cuotas debe ser mayor que cero")
        if entry < 0:
            raise OrderError("La entrada no puede ser negativa")
        return total, discount, installments, entry

    @staticmethod
    def validate_delivery_date(delivery_date, has_lenses):
        try:
            delivery = parse_datetime(delivery_date, "delivery_date")
        except ValueError as e:
            raise OrderError(str(e))
        if has_lenses:
            if not delivery:
                raise OrderError("Fecha de entrega es obligatoria para pedidos con lentes")
            if delivery.date() < datetime.now().date():
                raise OrderError("La fecha de entrega no puede estar en el pasado")
        return delivery

    @staticmethod
    def validate_prescription(prescription):
        prescription = prescription or {}
        try:
            appointment = parse_datetime(prescription.get("appointment_date"), "appointment_date")
        except ValueError as e:
            raise OrderError(str(e))
        if appointment:
            now = datetime.now()
            if appointment > now:
                raise OrderError("La fecha de la consulta no puede estar en el futuro")
            if appointment < now - relativedelta(years=1):
                raise OrderError("La receta tiene más de un año")
        return {
            "doctor_name": prescription.get("doctor_name"),
            "clinic_name": prescription.get("clinic_name"),
            "appointment_date": appointment,
        }

    @staticmethod
    def validate_laboratory(laboratory_id):
        if not laboratory_id:
            raise OrderError("Laboratorio es obligatorio")
        laboratory = LaboratoryRepo.get_by_id(to_id(laboratory_id, "laboratory_id", OrderError))
        if not laboratory:
            raise NotFoundError("Laboratorio no encontrado")
        if not laboratory.is_active:
            raise OrderError("Laboratorio inactivo")
        return laboratory

    @staticmethod
    def validate_status_transition(order, new_status):
        if new_status not in ALLOWED_TRANSITIONS:
            raise OrderError(f"Estado inválido: {new_status}")
        if new_status not in ALLOWED_TRANSITIONS[order.status]:
            raise OrderError(f"Transición no permitida: {order.status} -> {new_status}")
        if order.status == "pending" and new_status == "in_production" and not order.laboratory_id:
            raise OrderError("El pedido necesita un laboratorio para entrar en producción")
