from typing import Optional
from datetime import timedelta
from modules.core.models import Subscription, SubscriptionStatus, credits_for_price, utcnow
from modules.database.subscription_db import SubscriptionDB
import logging

class SubscriptionService:
    """Credit ledger built on top of the subscriptions collection"""

    PERIOD_DAYS = 30

    def __init__(self, db: Optional[SubscriptionDB] = None):
        self.db = db or SubscriptionDB()
        self.logger = logging.getLogger(__name__)

    def get_active_subscription(self, user_id: str) -> Optional[Subscription]:
        return self.db.get_user_subscription(user_id)

    def get_remaining_credits(self, user_id: str) -> int:
        subscription = self.db.get_user_subscription(user_id)
        return subscription.remaining_credits if subscription else 0

    def has_credits(self, user_id: str) -> bool:
        return self.get_remaining_credits(user_id) > 0

    def consume_credit(self, subscription_id: str) -> None:
        """Charge one enhancement against a subscription"""
        self.db.update_subscription_credits(subscription_id, -1)

    def grant_credits(self, user_id: str, price_id: str, quantity: int = 1) -> Optional[Subscription]:
        """
        Record a purchase as a new active subscription

        Args:
            user_id: Buyer
            price_id: Plan id (price_basic, price_standard, ...)
            quantity: Number of plan units bought

        Returns:
            Subscription: The stored subscription, or None for an unknown plan
        """
        credits = credits_for_price(price_id) * quantity
        if credits <= 0:
            self.logger.error(f"Unknown price {price_id} for user {user_id}, no credits granted")
            return None

        subscription = Subscription(
            user_id=user_id,
            status=SubscriptionStatus.ACTIVE,
            price_id=price_id,
            quantity=quantity,
            period_end=utcnow() + timedelta(days=self.PERIOD_DAYS),
            remaining_credits=credits
        )
        self.db.create_subscription(subscription)
        self.logger.info(f"Granted {credits} credits to user {user_id} for {price_id}")
        return subscription
