from typing import Optional
from modules.core.models import User, utcnow
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import DatabaseError, handle_error
import logging

class UserDB:
    """Repository for user profiles"""

    COLLECTION = 'users'

    def __init__(self, db=None):
        self.db = db or FirebaseManager.get_instance().db
        self.logger = logging.getLogger(__name__)

    def create_user(self, user_id: str, email: str, name: Optional[str] = None,
                    photo_url: Optional[str] = None) -> User:
        """Create the profile on first sign-in, merging into an existing one otherwise"""
        try:
            doc_ref = self.db.collection(self.COLLECTION).document(user_id)
            snapshot = doc_ref.get()
            if snapshot.exists:
                data = {'email': email, 'updatedAt': utcnow()}
                if name:
                    data['name'] = name
                if photo_url:
                    data['photoUrl'] = photo_url
                doc_ref.set(data, merge=True)
                return User.from_dict({**snapshot.to_dict(), **data})

            user = User(id=user_id, email=email, name=name, photo_url=photo_url)
            doc_ref.set(user.to_dict(), merge=True)
            self.logger.info(f"Created user profile {user_id}")
            return user
        except Exception as e:
            self.logger.error(f"Error creating user {user_id}: {str(e)}")
            raise DatabaseError("Failed to create user profile", details=str(e)) from e

    @handle_error(wrap_as=DatabaseError, message="Failed to read from the database")
    def get_user(self, user_id: str) -> Optional[User]:
        """Get user information from Firestore"""
        doc = self.db.collection(self.COLLECTION).document(user_id).get()
        if doc.exists:
            return User.from_dict(doc.to_dict())
        return None

    def update_user_profile(self, user_id: str, name: Optional[str] = None,
                            photo_url: Optional[str] = None) -> None:
        """Profile edits from the settings page"""
        data = {'updatedAt': utcnow()}
        if name is not None:
            data['name'] = name
        if photo_url is not None:
            data['photoUrl'] = photo_url
        try:
            self.db.collection(self.COLLECTION).document(user_id).update(data)
        except Exception as e:
            self.logger.error(f"Error updating user {user_id}: {str(e)}")
            raise DatabaseError("Failed to update profile", details=str(e)) from e
