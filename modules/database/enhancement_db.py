from typing import Optional, List, Dict, Any
from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists
from modules.core.models import PhotoEnhancement, EnhancementStatus, utcnow
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import DatabaseError, handle_error
import logging

class EnhancementDB:
    """Repository for photo enhancement records"""

    COLLECTION = 'photoEnhancements'
    CHARGES_COLLECTION = 'creditCharges'

    def __init__(self, db=None):
        self.db = db or FirebaseManager.get_instance().db
        self.logger = logging.getLogger(__name__)

    def create_photo_enhancement(self, enhancement: PhotoEnhancement) -> str:
        """Store a new record in the processing state"""
        try:
            doc_ref = self.db.collection(self.COLLECTION).document()
            enhancement.id = doc_ref.id
            enhancement.status = EnhancementStatus.PROCESSING.value
            doc_ref.set(enhancement.to_dict())
            self.logger.info(f"Created photo enhancement {doc_ref.id} for user {enhancement.user_id}")
            return doc_ref.id
        except Exception as e:
            self.logger.error(f"Error creating photo enhancement: {str(e)}")
            raise DatabaseError("Failed to create enhancement record", details=str(e)) from e

    def update_photo_enhancement(self, enhancement_id: str, data: Dict[str, Any]) -> None:
        """Partial update; keys use the stored camelCase names"""
        try:
            self.db.collection(self.COLLECTION).document(enhancement_id).update({
                **data,
                'updatedAt': utcnow()
            })
        except Exception as e:
            self.logger.error(f"Error updating photo enhancement {enhancement_id}: {str(e)}")
            raise DatabaseError("Failed to update enhancement record", details=str(e)) from e

    @handle_error(wrap_as=DatabaseError, message="Failed to read from the database")
    def get_photo_enhancement(self, enhancement_id: str) -> Optional[PhotoEnhancement]:
        doc = self.db.collection(self.COLLECTION).document(enhancement_id).get()
        if doc.exists:
            return PhotoEnhancement.from_dict(doc.to_dict())
        return None

    @handle_error(wrap_as=DatabaseError, message="Failed to read from the database")
    def get_user_photo_enhancements(self, user_id: str, limit: Optional[int] = None) -> List[PhotoEnhancement]:
        """Enhancements of the user, newest first"""
        query = (
            self.db.collection(self.COLLECTION)
            .where('userId', '==', user_id)
            .order_by('createdAt', direction=firestore.Query.DESCENDING)
        )
        if limit:
            query = query.limit(limit)
        return [PhotoEnhancement.from_dict(doc.to_dict()) for doc in query.stream()]

    @handle_error(wrap_as=DatabaseError, message="Failed to read from the database")
    def get_user_enhancements_by_status(self, user_id: str, status: EnhancementStatus) -> List[PhotoEnhancement]:
        query = (
            self.db.collection(self.COLLECTION)
            .where('userId', '==', user_id)
            .where('status', '==', EnhancementStatus(status).value)
        )
        return [PhotoEnhancement.from_dict(doc.to_dict()) for doc in query.stream()]

    def claim_credit_charge(self, enhancement_id: str, subscription_id: str) -> bool:
        """Reserve the one credit charge of a record. False if it was already claimed."""
        try:
            self.db.collection(self.CHARGES_COLLECTION).document(enhancement_id).create({
                'subscriptionId': subscription_id,
                'claimedAt': utcnow()
            })
            return True
        except AlreadyExists:
            self.logger.info(f"Credit for enhancement {enhancement_id} already claimed")
            return False
        except Exception as e:
            self.logger.error(f"Error claiming credit for enhancement {enhancement_id}: {str(e)}")
            raise DatabaseError("Failed to claim enhancement credit", details=str(e)) from e

    def release_credit_charge(self, enhancement_id: str) -> None:
        """Drop a claim whose charge failed so the record can be charged later"""
        self.db.collection(self.CHARGES_COLLECTION).document(enhancement_id).delete()
