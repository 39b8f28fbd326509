# optica/errors/exceptions.py
# errores de negocio: los servicios los lanzan y register_error_handlers los traduce a JSON


class ServiceError(Exception):
    status_code = 400
    label = "Bad Request"

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ServiceError):
    status_code = 404
    label = "Not Found"


class CashRegisterError(ServiceError):
    pass


class PaymentError(ServiceError):
    pass


class PaymentValidationError(PaymentError):
    pass


class OrderError(ServiceError):
    pass


class LaboratoryError(ServiceError):
    pass


class LegacyClientError(ServiceError):
    pass


class MercadoPagoError(ServiceError):
    status_code = 502
    label = "Bad Gateway"
