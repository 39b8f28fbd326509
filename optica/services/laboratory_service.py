# optica/services/laboratory_service.py
import re

from flask import current_app

from optica.errors.exceptions import LaboratoryError, NotFoundError
from optica.repositories.laboratory_repo import LaboratoryRepo
from optica.utils.transaction import atomic

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
REQUIRED_ADDRESS = ("street", "number", "neighborhood", "city", "state", "zip_code")
ADDRESS_FIELDS = REQUIRED_ADDRESS + ("complement",)


def _text(value, field):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise LaboratoryError(f"{field} debe ser texto")
    return value.strip()


class LaboratoryService:

    @staticmethod
    def _clean(data, current=None):
        partial = current is not None
        clean = {}

        for field in ("name", "contact_name"):
            if field in data or not partial:
                value = _text(data.get(field), field)
                if not value:
                    raise LaboratoryError(f"{field} es obligatorio")
                clean[field] = value

        if "phone" in data or not partial:
            phone = re.sub(r"\D", "", str(data.get("phone") or ""))
            if len(phone) < 10:
                raise LaboratoryError("Teléfono debe tener al menos 10 dígitos")
            clean["phone"] = phone

        if "email" in data or not partial:
            email = _text(data.get("email"), "email").lower()
            if not EMAIL_RE.match(email):
                raise LaboratoryError("Email inválido")
            existing = LaboratoryRepo.find_by_email(email)
            if existing and (current is None or existing.id != current.id):
                raise LaboratoryError("Ya existe un laboratorio con este email", 409)
            clean["email"] = email

        if "is_active" in data:
            clean["is_active"] = bool(data["is_active"])

        if "address" in data or not partial:
            address = data.get("address") or {}
            if not isinstance(address, dict):
                raise LaboratoryError("Dirección inválida")
            for field in ADDRESS_FIELDS:
                value = _text(address.get(field), field)
                if field in REQUIRED_ADDRESS and not value and not partial:
                    raise LaboratoryError(f"Dirección incompleta: {field}")
                if field in address or not partial:
                    clean[field] = value or None
            if clean.get("state") is not None:
                if len(clean["state"]) != 2:
                    raise LaboratoryError("Estado debe tener 2 letras")
                clean["state"] = clean["state"].upper()
            if clean.get("zip_code") is not None:
                clean["zip_code"] = re.sub(r"\D", "", clean["zip_code"])
                if len(clean["zip_code"]) != 8:
                    raise LaboratoryError("CEP debe tener 8 dígitos")
        return clean

    @staticmethod
    def create_laboratory(data):
        clean = LaboratoryService._clean(data)
        with atomic("creando laboratorio"):
            laboratory = LaboratoryRepo.create(**clean)
        current_app.logger.info(f"Laboratorio {laboratory.id} creado")
        return laboratory

    @staticmethod
    def get_laboratory_by_id(laboratory_id):
        laboratory = LaboratoryRepo.get_by_id(laboratory_id)
        if not laboratory:
            raise NotFoundError("Laboratorio no encontrado")
        return laboratory

    @staticmethod
    def get_all_laboratories(page=1, per_page=10, is_active=None):
        return LaboratoryRepo.find_all(page, per_page, is_active=is_active)

    @staticmethod
    def update_laboratory(laboratory_id, data):
        laboratory = LaboratoryService.get_laboratory_by_id(laboratory_id)
        clean = LaboratoryService._clean(data, current=laboratory)
        with atomic("actualizando laboratorio"):
            LaboratoryRepo.update(laboratory, **clean)
        return laboratory

    @staticmethod
    def delete_laboratory(laboratory_id):
        laboratory = LaboratoryService.get_laboratory_by_id(laboratory_id)
        if LaboratoryRepo.has_orders(laboratory.id):
            raise LaboratoryError("Laboratorio con pedidos asociados; desactívelo en lugar de eliminarlo", 409)
        with atomic("eliminando laboratorio"):
            LaboratoryRepo.delete(laboratory)
        current_app.logger.info(f"Laboratorio {laboratory_id} eliminado")

    @staticmethod
    def toggle_active(laboratory_id):
        laboratory = LaboratoryService.get_laboratory_by_id(laboratory_id)
        with atomic("cambiando estado del laboratorio"):
            laboratory.is_active = not laboratory.is_active
        return laboratory
