def register_blueprints(app):
    """
    Importa y registra todos los blueprints de forma perezosa para evitar
    importaciones circulares (partially initialized module 'optica.api').
    """

    # ---- IMPORTS LOCALES (lazy) ----
    from optica.api.cash_register import bp as cash_register_bp
    from optica.api.payments import bp as payments_bp
    from optica.api.orders import bp as orders_bp
    from optica.api.laboratories import bp as laboratories_bp
    from optica.api.legacy_clients import bp as legacy_clients_bp
    from optica.api.mercado_pago import bp as mercado_pago_bp

    # ---- REGISTROS ----
    app.register_blueprint(cash_register_bp, url_prefix="/api/cash-registers")
    app.register_blueprint(payments_bp, url_prefix="/api/payments")
    app.register_blueprint(orders_bp, url_prefix="/api/orders")
    app.register_blueprint(laboratories_bp, url_prefix="/api/laboratories")
    app.register_blueprint(legacy_clients_bp, url_prefix="/api/legacy-clients")
    app.register_blueprint(mercado_pago_bp, url_prefix="/api/mercadopago")
