"""
Flask application for the Demand Forecasting HTTP surface.

All responses are JSON and carry permissive CORS headers.
"""
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from demand_forecasting.exceptions import (
    ForecastingError, SchemaError, ValidationError, InsufficientDataError, NotFoundError
)
from demand_forecasting.logging_setup import log_exception, get_logger

from .forecast_routes import forecast_bp
from .product_routes import product_bp
from .sales_data_routes import sales_data_bp

EXTENSION_KEY = 'demand_forecasting'

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, PUT, DELETE, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization, X-Requested-With'
}

ERROR_STATUS = (
    (SchemaError, 400),
    (ValidationError, 400),
    (InsufficientDataError, 400),
    (NotFoundError, 404),
)


def status_for(error: ForecastingError) -> int:
    """HTTP status for a service error; anything unlisted is a server error."""
    for error_class, status in ERROR_STATUS:
        if isinstance(error, error_class):
            return status
    return 500


def create_app(services=None) -> Flask:
    """Create the Flask application.

    Args:
        services: Pre-built bootstrap.Services; built from configuration when None
    """
    if services is None:
        from demand_forecasting.bootstrap import build_services
        services = build_services()

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = services

    app.register_blueprint(product_bp)
    app.register_blueprint(sales_data_bp)
    app.register_blueprint(forecast_bp)

    @app.after_request
    def add_cors_headers(response):
        for header, value in CORS_HEADERS.items():
            response.headers[header] = value
        return response

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    @app.errorhandler(ForecastingError)
    def handle_forecasting_error(error):
        status = status_for(error)
        if status >= 500:
            get_logger('api').error(f"{error.__class__.__name__}: {error}")
        return jsonify(error.to_dict()), status

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.name, 'details': error.description}), error.code
        log_exception('api', error, "Unhandled error")
        return jsonify({'error': 'Internal server error', 'details': str(error)}), 500

    return app


__all__ = ['create_app', 'status_for', 'EXTENSION_KEY']
