"""
HTTP API application factory.
Serves /api/enhance, /api/webhook and /api/health for the Streamlit UI and Stripe.
"""
import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from config.environment import Environment
from modules.core.error_handler import AppError, error_response
from modules.services.enhancement_handler import EnhanceRequestHandler
from modules.services.openai_service import EnhancementAdapter

logger = logging.getLogger(__name__)


def create_app(enhancement_handler=None, webhook_handler=None):
    """
    Application factory for the API.

    Args:
        enhancement_handler: Handler for /api/enhance; built from settings when omitted
        webhook_handler: Handler for /api/webhook; built on first delivery when omitted

    Returns:
        Configured Flask application instance
    """
    Environment.configure_logging()
    if not Environment.validate_config():
        logger.warning("Configuration is incomplete; storage and payments may be unavailable")

    app = Flask(__name__)
    app.config['DEBUG'] = Environment.DEBUG_MODE

    # One adapter per process, shared by every request
    if enhancement_handler is None:
        enhancement_handler = EnhanceRequestHandler(adapter=EnhancementAdapter.from_settings())

    app.extensions['enhancement_handler'] = enhancement_handler
    app.extensions['webhook_handler'] = webhook_handler

    from modules.api.routes import api_bp
    app.register_blueprint(api_bp)
    register_error_handlers(app)

    @app.after_request
    def log_request(response):
        logger.info(f"{request.method} {request.path} -> {response.status_code}")
        return response

    logger.info(f"API started (env={Environment.APP_ENV}, mock={enhancement_handler.is_mock()})")
    return app


def register_error_handlers(app):
    """JSON bodies for errors that escape a route."""

    @app.errorhandler(AppError)
    def app_error(error):
        logger.error(f"{request.method} {request.path} failed: {error.message}")
        payload, status = error_response(error)
        return jsonify(payload), status

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'error': error.description, 'code': error.name.upper().replace(' ', '_')}), error.code

    @app.errorhandler(Exception)
    def unexpected_error(error):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        payload, status = error_response(error)
        return jsonify(payload), status
