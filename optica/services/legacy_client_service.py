# optica/services/legacy_client_service.py
import re
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from optica.errors.exceptions import LegacyClientError, NotFoundError
from optica.models.catalog import LEGACY_CLIENT_STATUSES
from optica.repositories.legacy_client_repo import LegacyClientRepo
from optica.utils.money import to_decimal, ZERO
from optica.utils.transaction import atomic

ADDRESS_FIELDS = ("street", "number", "complement", "neighborhood", "city", "state", "zip_code")


def _text(value, field):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise LegacyClientError(f"{field} debe ser texto")
    return value.strip()


def _digits(value):
    return re.sub(r"\D", "", str(value or ""))


class LegacyClientService:

    @staticmethod
    def _clean(data, current=None):
        """Valida y normaliza el payload (create o update parcial)."""
        clean = {}
        if "name" in data or current is None:
            name = _text(data.get("name"), "name")
            if not name:
                raise LegacyClientError("El nombre es obligatorio")
            clean["name"] = name

        if "document_id" in data:
            document = _digits(data.get("document_id"))
            if document:
                if len(document) not in (11, 14):
                    raise LegacyClientError("Documento debe tener 11 (CPF) o 14 (CNPJ) dígitos")
                existing = LegacyClientRepo.find_by_document(document)
                if existing and (current is None or existing.id != current.id):
                    raise LegacyClientError("Ya existe un cliente con este documento", 409)
            clean["document_id"] = document or None

        if "email" in data:
            email = _text(data.get("email"), "email")
            if email and "@" not in email:
                raise LegacyClientError("Email inválido")
            clean["email"] = email or None

        if "phone" in data:
            phone = _digits(data.get("phone"))
            if phone and not 10 <= len(phone) <= 11:
                raise LegacyClientError("Teléfono debe tener 10 u 11 dígitos")
            clean["phone"] = phone or None

        if "total_debt" in data:
            debt = to_decimal(data.get("total_debt"), "total_debt", LegacyClientError, default=0)
            if debt < 0:
                raise LegacyClientError("La deuda no puede ser negativa")
            clean["total_debt"] = debt

        if "status" in data:
            if data["status"] not in LEGACY_CLIENT_STATUSES:
                raise LegacyClientError("Estado inválido")
            clean["status"] = data["status"]

        if "observations" in data:
            clean["observations"] = data.get("observations")

        address = data.get("address") or {}
        for field in ADDRESS_FIELDS:
            if field in address:
                clean[field] = address[field]
        return clean

    @staticmethod
    def create_legacy_client(data):
        clean = LegacyClientService._clean(data)
        clean.setdefault("total_debt", ZERO)
        try:
            with atomic("creando cliente legado"):
                client = LegacyClientRepo.create(**clean)
        except IntegrityError:
            raise LegacyClientError("Ya existe un cliente con este documento", 409)
        current_app.logger.info(f"Cliente legado {client.id} creado")
        return client

    @staticmethod
    def get_legacy_client_by_id(client_id):
        client = LegacyClientRepo.get_by_id(client_id)
        if not client:
            raise NotFoundError("Cliente legado no encontrado")
        return client

    @staticmethod
    def find_by_document(document_id):
        document = _digits(document_id)
        if not document:
            raise LegacyClientError("Documento es obligatorio")
        client = LegacyClientRepo.find_by_document(document)
        if not client:
            raise NotFoundError("Cliente legado no encontrado")
        return client

    @staticmethod
    def get_all_legacy_clients(page=1, per_page=10, status=None, search=None):
        clients, total, total_pages = LegacyClientRepo.find_all(page, per_page, status=status, search=search)
        if not clients:
            raise NotFoundError("No se encontraron clientes legados")
        return clients, total, total_pages

    @staticmethod
    def update_legacy_client(client_id, data):
        client = LegacyClientService.get_legacy_client_by_id(client_id)
        clean = LegacyClientService._clean(data, current=client)
        with atomic("actualizando cliente legado"):
            LegacyClientRepo.update(client, **clean)
        return client

    @staticmethod
    def get_debtors(min_debt=None, max_debt=None):
        low = to_decimal(min_debt, "min_debt", LegacyClientError) if min_debt not in (None, "") else None
        high = to_decimal(max_debt, "max_debt", LegacyClientError) if max_debt not in (None, "") else None
        if low is not None and high is not None and low > high:
            raise LegacyClientError("min_debt no puede ser mayor que max_debt")
        return LegacyClientRepo.find_debtors(low, high)

    @staticmethod
    def get_payment_history(client_id, start_date=None, end_date=None):
        LegacyClientService.get_legacy_client_by_id(client_id)
        history = LegacyClientRepo.find_payments(client_id, start_date, end_date)
        if not history:
            raise NotFoundError("No hay pagos para este cliente en el período")
        return history

    @staticmethod
    def toggle_client_status(client_id):
        client = LegacyClientService.get_legacy_client_by_id(client_id)
        new_status = "inactive" if client.status == "active" else "active"
        warning = None
        if new_status == "inactive" and (client.total_debt or ZERO) > 0:
            warning = f"Cliente {client.id} inactivado con deuda pendiente de {client.total_debt}"
            current_app.logger.warning(warning)
        with atomic("cambiando estado del cliente legado"):
            client.status = new_status
        return client, warning

    @staticmethod
    def update_debt(client_id, amount, payment_id=None):
        """amount > 0 suma deuda; amount < 0 es un pago (con payment_id queda en el historial). No hace commit."""
        client = LegacyClientService.get_legacy_client_by_id(client_id)
        amount = to_decimal(amount, "amount", LegacyClientError)
        client.total_debt = max((client.total_debt or ZERO) + amount, ZERO)
        if amount < 0 and payment_id is not None:
            now = datetime.now()
            client.last_payment_date = now
            client.last_payment_amount = -amount
            LegacyClientRepo.add_payment(client, -amount, payment_id=payment_id, date=now)
        return client

    @staticmethod
    def remove_payment(client_id, payment_id):
        client = LegacyClientService.get_legacy_client_by_id(client_id)
        client.payment_history = [h for h in client.payment_history if h.payment_id != payment_id]
        return client
