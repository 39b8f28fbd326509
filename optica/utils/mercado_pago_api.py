# optica/utils/mercado_pago_api.py
"""
Cliente HTTP mínimo para la API de Mercado Pago (preferencias y pagos).

Usa httpx síncrono; en tests se inyecta un transport (httpx.MockTransport)
registrando la instancia en app.extensions["mercado_pago_api"].
"""
import httpx
from flask import current_app

from optica.errors.exceptions import MercadoPagoError


class MercadoPagoAPI:
    def __init__(self, access_token, base_url="https://api.mercadopago.com", timeout=10.0, transport=None):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self):
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
        )

    def _request(self, method, path, **kwargs):
        if not self.access_token:
            raise MercadoPagoError("Token de Mercado Pago no configurado", 500)
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            current_app.logger.error(f"Mercado Pago timeout en {method} {path}")
            raise MercadoPagoError(f"Timeout consultando Mercado Pago ({self.timeout}s)", 504)
        except httpx.HTTPError as e:
            current_app.logger.error(f"Mercado Pago error de red en {method} {path}: {e}")
            raise MercadoPagoError("Error de comunicación con Mercado Pago")

        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            current_app.logger.error(f"Mercado Pago HTTP {response.status_code}: {detail}")
            if response.status_code == 404:
                raise MercadoPagoError(f"Recurso no encontrado en Mercado Pago: {detail}", 404)
            raise MercadoPagoError(f"Mercado Pago respondió {response.status_code}: {detail}")
        return response.json()

    @staticmethod
    def validate_items(items):
        if not items:
            raise MercadoPagoError("La preferencia necesita al menos un ítem", 400)
        for item in items:
            if not item.get("title") or not item.get("id"):
                raise MercadoPagoError("Cada ítem necesita id y título", 400)
            try:
                price = float(item.get("unit_price") or 0)
            except (TypeError, ValueError):
                price = 0
            if price <= 0:
                raise MercadoPagoError(f"Precio inválido para el ítem {item.get('id')}", 400)

    def create_preference(self, preference):
        self.validate_items(preference.get("items"))
        return self._request("POST", "/checkout/preferences", json=preference)

    def get_payment(self, payment_id):
        return self._request("GET", f"/v1/payments/{payment_id}")

    def get_payment_methods(self):
        return self._request("GET", "/v1/payment_methods")


def get_mercado_pago_api():
    api = current_app.extensions.get("mercado_pago_api")
    if api is None:
        api = MercadoPagoAPI(
            access_token=current_app.config.get("MERCADO_PAGO_ACCESS_TOKEN"),
            base_url=current_app.config.get("MERCADO_PAGO_BASE_URL", "https://api.mercadopago.com"),
            timeout=current_app.config.get("MERCADO_PAGO_TIMEOUT", 10.0),
        )
        current_app.extensions["mercado_pago_api"] = api
    return api
