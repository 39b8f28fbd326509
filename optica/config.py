import os
from datetime import timedelta


class BaseConfig:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///local.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", 3600))
    )
    CORS_ORIGINS = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if o.strip()
    ]
    JSON_SORT_KEYS = False

    # cache de cajas (segundos)
    CACHE_TTL = int(os.getenv("CACHE_TTL", 300))

    # Mercado Pago
    MERCADO_PAGO_ACCESS_TOKEN = os.getenv("MERCADO_PAGO_ACCESS_TOKEN", "")
    MERCADO_PAGO_BASE_URL = os.getenv("MERCADO_PAGO_BASE_URL", "https://api.mercadopago.com")
    MERCADO_PAGO_TIMEOUT = float(os.getenv("MERCADO_PAGO_TIMEOUT", 10))
    MERCADO_PAGO_STATEMENT_DESCRIPTOR = os.getenv(
        "MERCADO_PAGO_STATEMENT_DESCRIPTOR", "Óticas Queiroz"
    )
    HOST_URL = os.getenv("HOST_URL", "http://localhost:5000")


class DevConfig(BaseConfig):
    DEBUG = True


class ProdConfig(BaseConfig):
    DEBUG = False


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    MERCADO_PAGO_ACCESS_TOKEN = "TEST-token"
    CACHE_TTL = 300


def settings():
    env = os.getenv("FLASK_ENV", "development").lower()
    if env == "production":
        return ProdConfig
    if env == "testing":
        return TestConfig
    return DevConfig
