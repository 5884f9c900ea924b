import stripe
import os
from typing import Optional
from config.environment import Environment
from modules.core.models import PRICING_PLANS, PricingPlan
from modules.core.error_handler import ValidationError, PaymentError
import logging

class PaymentService:
    def __init__(self, api_key: Optional[str] = None):
        self.stripe = stripe
        self.stripe.api_key = api_key or Environment.STRIPE_SETTINGS['secret_key']
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def get_plan(price_id: str) -> PricingPlan:
        plan = PRICING_PLANS.get(price_id)
        if not plan:
            raise ValidationError(f"Unknown plan: {price_id}", error_code="UNKNOWN_PLAN")
        return plan

    @staticmethod
    def price_env_key(price_id: str) -> str:
        """price_standard -> STRIPE_STANDARD_PRICE_ID"""
        return f"STRIPE_{price_id.replace('price_', '').upper()}_PRICE_ID"

    @classmethod
    def stripe_price_for(cls, price_id: str) -> str:
        """Stripe price configured for a plan, falling back to the plan id itself"""
        return os.getenv(cls.price_env_key(price_id), price_id)

    @classmethod
    def plan_for_stripe_price(cls, stripe_price_id: Optional[str]) -> Optional[str]:
        """Inverse of stripe_price_for"""
        if not stripe_price_id:
            return None
        for price_id in PRICING_PLANS:
            if cls.stripe_price_for(price_id) == stripe_price_id:
                return price_id
        return None

    def create_checkout_session(self, price_id: str, user_id: str) -> stripe.checkout.Session:
        """Create a one-time Stripe Checkout session for a credit plan"""
        self.get_plan(price_id)
        base_url = Environment.PUBLIC_URL.rstrip('/')

        try:
            session = self.stripe.checkout.Session.create(
                payment_method_types=['card'],
                line_items=[{
                    'price': self.stripe_price_for(price_id),
                    'quantity': 1,
                }],
                mode='payment',
                success_url=f"{base_url}{Environment.STRIPE_SETTINGS['success_path']}",
                cancel_url=f"{base_url}{Environment.STRIPE_SETTINGS['cancel_path']}",
                metadata={
                    'userId': user_id,
                    'priceId': price_id
                }
            )
            self.logger.info(f"Created checkout session {session.id} for user {user_id} ({price_id})")
            return session
        except stripe.StripeError as e:
            self.logger.error(f"Error creating checkout session: {str(e)}")
            raise PaymentError("Failed to create checkout session", details=str(e)) from e

    def get_session_price_id(self, session_id: str) -> Optional[str]:
        """Plan id of the first line item of a checkout session"""
        line_items = self.stripe.checkout.Session.list_line_items(session_id, limit=1)
        if not line_items.data:
            return None
        stripe_price_id = line_items.data[0].price.id
        return self.plan_for_stripe_price(stripe_price_id) or stripe_price_id
