from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from optica.extensions import db
from optica.errors.exceptions import ServiceError


def register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def service_error(e):
        if e.status_code >= 500:
            app.logger.error("%s: %s", type(e).__name__, e.message)
        return jsonify(error=e.label, detail=e.message), e.status_code

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify(error="Bad Request", detail=str(e)), 400

    @app.errorhandler(401)
    def unauthorized(e):
        return jsonify(error="Unauthorized", detail=str(e)), 401

    @app.errorhandler(403)
    def forbidden(e):
        return jsonify(error="Forbidden", detail=str(e)), 403

    @app.errorhandler(404)
    def not_found(e):
        return jsonify(error="Not Found"), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify(error="Method Not Allowed"), 405

    @app.errorhandler(422)
    def unprocessable(e):
        return jsonify(error="Unprocessable Entity", detail=str(e)), 422

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        db.session.rollback()
        app.logger.exception(e)
        return jsonify(error="Database Error"), 500

    @app.errorhandler(Exception)
    def internal(e):
        if isinstance(e, HTTPException):
            return jsonify(error=e.name, detail=e.description), e.code
        app.logger.exception(e)
        return jsonify(error="Internal Server Error"), 500
