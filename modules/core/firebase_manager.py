import firebase_admin
from firebase_admin import credentials, auth, firestore, storage
import pyrebase
import json
import os
import logging
from typing import Optional, Dict, Any
from config.environment import Environment

logger = logging.getLogger(__name__)

class FirebaseManager:
    """Manages Firebase initialization and operations."""

    _instance = None
    _initialized = False
    _auth = None
    _db = None
    _bucket = None
    _firebase = None
    _firebase_app = None

    @classmethod
    def get_instance(cls) -> 'FirebaseManager':
        """Get singleton instance of FirebaseManager"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self):
        """Initialize Firebase connection if not already initialized"""
        self._logger = logging.getLogger(__name__)
        if not FirebaseManager._initialized:
            FirebaseManager.initialize()

    @staticmethod
    def _load_credentials() -> Dict[str, Any]:
        """Service account from FIREBASE_CREDENTIALS, a credentials file, or discrete variables"""
        cred_json = os.getenv('FIREBASE_CREDENTIALS')
        if cred_json:
            return json.loads(cred_json)

        cred_path = os.getenv('FIREBASE_CREDENTIALS_PATH')
        if cred_path and os.path.exists(cred_path):
            with open(cred_path, 'r') as f:
                return json.load(f)

        private_key = os.getenv('FIREBASE_PRIVATE_KEY')
        if not private_key:
            raise ValueError("Firebase credentials not found. Set FIREBASE_CREDENTIALS, "
                             "FIREBASE_CREDENTIALS_PATH or FIREBASE_PRIVATE_KEY.")

        return {
            "type": "service_account",
            "project_id": os.getenv('FIREBASE_PROJECT_ID'),
            "private_key_id": os.getenv('FIREBASE_PRIVATE_KEY_ID'),
            "private_key": private_key.replace("\\n", "\n"),
            "client_email": os.getenv('FIREBASE_CLIENT_EMAIL'),
            "client_id": os.getenv('FIREBASE_CLIENT_ID'),
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
            "client_x509_cert_url": os.getenv('FIREBASE_CLIENT_X509_CERT_URL')
        }

    @classmethod
    def initialize(cls) -> bool:
        """Initialize Firebase connection"""
        try:
            if cls._initialized:
                return True

            firebase_config = Environment.get_firebase_config()

            try:
                cls._firebase_app = firebase_admin.get_app()
                logger.info("Using existing Firebase Admin SDK app")
            except ValueError:
                cred = credentials.Certificate(cls._load_credentials())
                cls._firebase_app = firebase_admin.initialize_app(cred, {
                    'storageBucket': firebase_config.get('storageBucket')
                })
                logger.info("Firebase Admin SDK initialized successfully")

            cls._db = firestore.client(app=cls._firebase_app)
            cls._bucket = storage.bucket(app=cls._firebase_app)
            cls._auth = auth.Client(cls._firebase_app)

            # Pyrebase is only needed for password sign-in from the UI
            if firebase_config.get('apiKey'):
                cls._firebase = pyrebase.initialize_app({
                    **firebase_config,
                    "databaseURL": f"https://{firebase_config.get('projectId')}.firebaseio.com"
                })
            else:
                logger.warning("FIREBASE_API_KEY not set, password sign-in is unavailable")

            cls._initialized = True
            logger.info("Firebase initialized successfully")
            return True

        except Exception as e:
            logger.error(f"Error initializing Firebase: {str(e)}")
            return False

    @property
    def db(self):
        """Get Firestore database instance"""
        if not self._initialized:
            raise RuntimeError("Firebase not initialized")
        return self._db

    @property
    def bucket(self):
        """Get the default Storage bucket"""
        if not self._initialized:
            raise RuntimeError("Firebase not initialized")
        return self._bucket

    @property
    def auth(self):
        """Get the Admin SDK auth client"""
        if not self._initialized:
            raise RuntimeError("Firebase not initialized")
        return self._auth

    @property
    def pyrebase_auth(self):
        """Get the Pyrebase auth client, None when the web API key is missing"""
        return self._firebase.auth() if self._firebase else None

    @classmethod
    def reset(cls) -> None:
        """Drop cached clients; the next get_instance() reinitializes"""
        cls._instance = None
        cls._initialized = False
        cls._auth = None
        cls._db = None
        cls._bucket = None
        cls._firebase = None
        cls._firebase_app = None

    @staticmethod
    def is_initialized_static() -> bool:
        return FirebaseManager._initialized

    @staticmethod
    def get_current_user_id(session_state) -> Optional[str]:
        """uid of the signed-in user stored in a Streamlit session"""
        user = session_state.get('user') if session_state else None
        if user:
            return session_state.get('uid') or user.get('localId')
        return None
