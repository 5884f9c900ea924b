import json
import stripe
from typing import Dict, Any, Optional, Tuple, Union
from config.environment import Environment
from config.feature_flags import FeatureFlags
from modules.services.payment_service import PaymentService
from modules.services.subscription_service import SubscriptionService
from modules.database.subscription_db import SubscriptionDB
import logging

def _field(obj, key: str):
    """Read a key from a dict or a Stripe object; None when absent"""
    if obj is not None and key in obj:
        return obj[key]
    return None

class WebhookHandler:
    """Verifies Stripe webhook deliveries and grants purchased credits"""

    def __init__(self, webhook_secret: Optional[str] = None,
                 subscription_service: Optional[SubscriptionService] = None,
                 subscription_db: Optional[SubscriptionDB] = None,
                 payment_service: Optional[PaymentService] = None):
        self.stripe = stripe
        self.webhook_secret = webhook_secret or Environment.STRIPE_SETTINGS['webhook_secret']
        self.subscription_db = subscription_db or SubscriptionDB()
        self.subscription_service = subscription_service or SubscriptionService(self.subscription_db)
        self.payment_service = payment_service or PaymentService()
        self.logger = logging.getLogger(__name__)

        self.event_handlers = {
            'checkout.session.completed': self._handle_checkout_session_completed
        }

    def handle_event(self, payload: Union[str, bytes], sig_header: Optional[str]) -> Tuple[Dict[str, Any], int]:
        """
        Handle one webhook delivery

        Args:
            payload: Raw request body exactly as received
            sig_header: Value of the stripe-signature header

        Returns:
            tuple: (response payload, HTTP status)
        """
        if not sig_header:
            return {"error": "Webhook Error: Missing stripe-signature header"}, 400

        try:
            self.stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            self.logger.warning(f"Rejected webhook: {str(e)}")
            return {"error": f"Webhook Error: {str(e)}"}, 400

        # Handlers read the verified payload as plain dicts, not Stripe objects
        event = json.loads(payload)

        event_id = event['id']
        event_type = event['type']
        handler = self.event_handlers.get(event_type)
        if not handler:
            self.logger.info(f"Ignoring unhandled event type {event_type}")
            return {"received": True}, 200

        idempotent = FeatureFlags.is_feature_enabled('webhook_idempotency')
        if idempotent and not self.subscription_db.record_processed_event(event_id, event_type):
            return {"received": True, "duplicate": True}, 200

        try:
            handler(event['data']['object'])
        except Exception as e:
            self.logger.error(f"Error processing event {event_id}: {str(e)}")
            if idempotent:
                self.subscription_db.forget_processed_event(event_id)
            return {"error": "Webhook handler failed"}, 500

        return {"received": True}, 200

    def _resolve_price_id(self, session) -> Optional[str]:
        price_id = _field(_field(session, 'metadata'), 'priceId')
        if price_id:
            return price_id
        return self.payment_service.get_session_price_id(session['id'])

    def _handle_checkout_session_completed(self, session) -> None:
        """Grant the credits of a completed checkout"""
        user_id = _field(_field(session, 'metadata'), 'userId')
        if not user_id:
            self.logger.error(f"Checkout session {_field(session, 'id')} has no userId in metadata")
            return

        price_id = self._resolve_price_id(session)
        self.subscription_service.grant_credits(user_id, price_id)
