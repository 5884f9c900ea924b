from typing import Optional, List
from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists
from modules.core.models import Subscription, SubscriptionStatus, ProcessedEvent
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import DatabaseError, handle_error
import logging

class SubscriptionDB:
    """Repository for subscriptions and the credits they carry"""

    COLLECTION = 'subscriptions'
    EVENTS_COLLECTION = 'processedEvents'

    def __init__(self, db=None):
        self.db = db or FirebaseManager.get_instance().db
        self.logger = logging.getLogger(__name__)

    def get_user_subscription(self, user_id: str) -> Optional[Subscription]:
        """Most recently created active subscription of the user"""
        try:
            query = (
                self.db.collection(self.COLLECTION)
                .where('userId', '==', user_id)
                .where('status', '==', SubscriptionStatus.ACTIVE.value)
                .order_by('createdAt', direction=firestore.Query.DESCENDING)
                .limit(1)
            )
            docs = list(query.stream())
        except Exception as e:
            self.logger.error(f"Error getting subscription for user {user_id}: {str(e)}")
            raise DatabaseError("Failed to load subscription", details=str(e)) from e

        if not docs:
            return None
        return Subscription.from_dict(docs[0].to_dict())

    @handle_error(wrap_as=DatabaseError, message="Failed to read from the database")
    def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        doc = self.db.collection(self.COLLECTION).document(subscription_id).get()
        if doc.exists:
            return Subscription.from_dict(doc.to_dict())
        return None

    @handle_error(wrap_as=DatabaseError, message="Failed to read from the database")
    def list_user_subscriptions(self, user_id: str) -> List[Subscription]:
        """All purchases of the user, newest first"""
        query = (
            self.db.collection(self.COLLECTION)
            .where('userId', '==', user_id)
            .order_by('createdAt', direction=firestore.Query.DESCENDING)
        )
        return [Subscription.from_dict(doc.to_dict()) for doc in query.stream()]

    def create_subscription(self, subscription: Subscription) -> str:
        """Store a new active subscription under an auto-generated id"""
        try:
            doc_ref = self.db.collection(self.COLLECTION).document()
            subscription.id = doc_ref.id
            subscription.status = SubscriptionStatus.ACTIVE.value
            doc_ref.set(subscription.to_dict())
            self.logger.info(f"Created subscription {doc_ref.id} for user {subscription.user_id} "
                             f"with {subscription.remaining_credits} credits")
            return doc_ref.id
        except Exception as e:
            self.logger.error(f"Error creating subscription: {str(e)}")
            raise DatabaseError("Failed to create subscription", details=str(e)) from e

    def update_subscription_credits(self, subscription_id: str, credits: int) -> None:
        """Add a signed number of credits with an atomic field increment"""
        try:
            self.db.collection(self.COLLECTION).document(subscription_id).update({
                'remainingCredits': firestore.Increment(credits)
            })
            self.logger.info(f"Changed credits of subscription {subscription_id} by {credits}")
        except Exception as e:
            self.logger.error(f"Error updating credits of subscription {subscription_id}: {str(e)}")
            raise DatabaseError("Failed to update credits", details=str(e)) from e

    def record_processed_event(self, event_id: str, event_type: str) -> bool:
        """Mark a Stripe event as applied. False if it was already recorded."""
        try:
            event = ProcessedEvent(id=event_id, type=event_type)
            self.db.collection(self.EVENTS_COLLECTION).document(event_id).create(event.to_dict())
            return True
        except AlreadyExists:
            self.logger.warning(f"Stripe event {event_id} already processed")
            return False

    def forget_processed_event(self, event_id: str) -> None:
        """Allow a redelivery of an event whose processing failed"""
        self.db.collection(self.EVENTS_COLLECTION).document(event_id).delete()
