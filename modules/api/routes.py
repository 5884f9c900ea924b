"""
API routes: image enhancement, Stripe webhook, health check.
"""
from flask import Blueprint, current_app, jsonify, request

from modules.services.webhook_handler import WebhookHandler

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _webhook_handler():
    handler = current_app.extensions.get('webhook_handler')
    if handler is None:
        handler = WebhookHandler()
        current_app.extensions['webhook_handler'] = handler
    return handler


@api_bp.route('/enhance', methods=['POST'])
def enhance():
    """Enhance the image at imageUrl. Always 200 once the body is valid."""
    handler = current_app.extensions['enhancement_handler']
    payload, status = handler.handle(request.get_data())
    return jsonify(payload), status


@api_bp.route('/webhook', methods=['POST'])
def webhook():
    """Stripe webhook receiver, verified through the stripe-signature header."""
    payload = request.get_data()
    sig_header = request.headers.get('Stripe-Signature')
    body, status = _webhook_handler().handle_event(payload, sig_header)
    return jsonify(body), status


@api_bp.route('/health', methods=['GET'])
def health():
    handler = current_app.extensions['enhancement_handler']
    return jsonify({'status': 'ok', 'mock': handler.is_mock()}), 200
