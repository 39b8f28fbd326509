# optica/__init__.py
from flask import Flask
from dotenv import load_dotenv

# usa SIEMPRE las instancias compartidas desde optica.extensions
from optica.extensions import db, jwt, cors, migrate


def create_app(config_object=None):
    # 1) Cargar variables de entorno
    load_dotenv()

    app = Flask(__name__)

    # 2) Configuración (DB, JWT, Mercado Pago, cache)
    from optica.config import settings
    app.config.from_object(config_object or settings())

    # 3) CORS
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
    )

    # 4) Inicializar extensiones
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    from optica.utils.cache import TTLCache
    app.extensions["register_cache"] = TTLCache(ttl=app.config["CACHE_TTL"])

    # 5) Registrar blueprints y manejadores de error
    from optica.api import register_blueprints
    register_blueprints(app)

    from optica.errors.handlers import register_error_handlers
    register_error_handlers(app)

    # 6) callbacks JWT centralizados
    from optica.utils.auth import register_jwt_callbacks
    register_jwt_callbacks(jwt)

    app.logger.info("optica iniciado con %d rutas", len(list(app.url_map.iter_rules())))
    return app
