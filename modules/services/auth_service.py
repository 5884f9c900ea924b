from typing import Dict, Optional, Any
import requests.exceptions
from firebase_admin import auth as admin_auth
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import AuthenticationError
from modules.database.user_db import UserDB
import logging

logger = logging.getLogger(__name__)

# Firebase REST error codes surfaced by Pyrebase
AUTH_ERROR_MESSAGES = {
    'EMAIL_EXISTS': "Email already exists",
    'EMAIL_NOT_FOUND': "Email not found",
    'INVALID_PASSWORD': "Invalid password",
    'INVALID_LOGIN_CREDENTIALS': "Invalid email or password",
    'INVALID_EMAIL': "Invalid email format",
    'WEAK_PASSWORD': "Password should be at least 6 characters",
    'TOO_MANY_ATTEMPTS_TRY_LATER': "Too many attempts, please try again later",
}

def _auth_error_message(error: Exception) -> str:
    message = str(error)
    for code, friendly in AUTH_ERROR_MESSAGES.items():
        if code in message:
            return friendly
    return f"Authentication error: {message}"

class AuthService:
    """Email/password authentication backed by Firebase Authentication"""

    def __init__(self, firebase: Optional[FirebaseManager] = None, user_db: Optional[UserDB] = None):
        self.firebase = firebase or FirebaseManager.get_instance()
        self.user_db = user_db or UserDB(self.firebase.db)

    def _pyrebase_auth(self):
        pb_auth = self.firebase.pyrebase_auth
        if pb_auth is None:
            raise AuthenticationError("Authentication service not initialized", error_code="AUTH_UNAVAILABLE")
        return pb_auth

    def ensure_user_document(self, uid: str, email: str, name: Optional[str] = None,
                             photo_url: Optional[str] = None):
        """Create users/{uid} on first sign-in"""
        return self.user_db.create_user(uid, email, name=name, photo_url=photo_url)

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in with email and password

        Returns:
            Dict with success status and user data or error message
        """
        try:
            auth_user = self._pyrebase_auth().sign_in_with_email_and_password(email, password)
        except requests.exceptions.HTTPError as e:
            logger.warning(f"Sign in failed for {email}: {str(e)}")
            return {'success': False, 'error': _auth_error_message(e)}
        except AuthenticationError as e:
            return {'success': False, 'error': e.message}

        uid = auth_user['localId']
        user = self.ensure_user_document(uid, email, name=auth_user.get('displayName') or None)
        logger.info(f"User {uid} signed in")
        return {
            'success': True,
            'user': user.to_dict(),
            'uid': uid,
            'token': auth_user.get('idToken'),
            'refresh_token': auth_user.get('refreshToken')
        }

    def restore_session(self, refresh_token: str) -> Dict[str, Any]:
        """
        Sign a returning visitor back in from a saved refresh token

        Returns:
            Dict shaped like sign_in's result
        """
        try:
            tokens = self._pyrebase_auth().refresh(refresh_token)
        except requests.exceptions.HTTPError as e:
            logger.info(f"Saved login could not be refreshed: {str(e)}")
            return {'success': False, 'error': _auth_error_message(e)}
        except AuthenticationError as e:
            return {'success': False, 'error': e.message}

        uid = tokens['userId']
        user = self.user_db.get_user(uid)
        if user is None:
            return {'success': False, 'error': "Account not found"}

        logger.info(f"Restored login of user {uid}")
        return {
            'success': True,
            'user': user.to_dict(),
            'uid': uid,
            'token': tokens['idToken'],
            'refresh_token': tokens['refreshToken']
        }

    def sign_up(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        """Create an account with the Admin SDK, then sign it in"""
        try:
            user_record = self.firebase.auth.create_user(email=email, password=password, display_name=name)
        except admin_auth.EmailAlreadyExistsError:
            return {'success': False, 'error': AUTH_ERROR_MESSAGES['EMAIL_EXISTS']}
        except ValueError as e:
            return {'success': False, 'error': str(e)}

        logger.info(f"Created account {user_record.uid}")
        self.ensure_user_document(user_record.uid, email, name=name)
        return self.sign_in(email, password)

    def send_password_reset(self, email: str) -> Dict[str, Any]:
        try:
            self._pyrebase_auth().send_password_reset_email(email)
            return {'success': True, 'message': "Password reset email sent"}
        except requests.exceptions.HTTPError as e:
            return {'success': False, 'error': _auth_error_message(e)}
        except AuthenticationError as e:
            return {'success': False, 'error': e.message}

    def verify_id_token(self, id_token: str) -> Dict[str, Any]:
        """Decoded claims of a Firebase ID token"""
        try:
            return self.firebase.auth.verify_id_token(id_token)
        except (ValueError, admin_auth.InvalidIdTokenError, admin_auth.ExpiredIdTokenError) as e:
            raise AuthenticationError("Invalid or expired session", error_code="INVALID_TOKEN",
                                      details=str(e)) from e
