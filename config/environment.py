"""
Environment configuration for the Photo Enhance AI application.
This file manages environment-specific settings and configurations.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

class Environment:
    """Environment configuration class"""

    # Application Settings
    APP_NAME = "Photo Enhance AI"
    APP_VERSION = "1.0.0"
    APP_ENV = os.getenv('APP_ENV', 'development')
    DEBUG_MODE = os.getenv('DEBUG_MODE', 'False').lower() == 'true'
    PUBLIC_URL = os.getenv('PUBLIC_URL', os.getenv('NEXT_PUBLIC_URL', 'http://localhost:8501'))

    # Firebase Settings
    FIREBASE_CONFIG = {
        'apiKey': os.getenv('FIREBASE_API_KEY'),
        'authDomain': os.getenv('FIREBASE_AUTH_DOMAIN'),
        'projectId': os.getenv('FIREBASE_PROJECT_ID'),
        'storageBucket': os.getenv('FIREBASE_STORAGE_BUCKET'),
        'messagingSenderId': os.getenv('FIREBASE_MESSAGING_SENDER_ID'),
        'appId': os.getenv('FIREBASE_APP_ID')
    }

    # Stripe Settings
    STRIPE_SETTINGS = {
        'secret_key': os.getenv('STRIPE_SECRET_KEY'),
        'webhook_secret': os.getenv('STRIPE_WEBHOOK_SECRET'),
        'success_path': '/dashboard?success=true',
        'cancel_path': '/pricing?canceled=true'
    }

    # Enhancement Settings
    ENHANCEMENT_SETTINGS = {
        'openai_api_key': os.getenv('OPENAI_API_KEY'),
        'strategy': os.getenv('ENHANCEMENT_STRATEGY', 'regenerate'),
        'vision_model': os.getenv('OPENAI_VISION_MODEL', 'gpt-4o'),
        'image_model': os.getenv('OPENAI_IMAGE_MODEL', 'dall-e-3'),
        'timeout': int(os.getenv('ENHANCEMENT_TIMEOUT', '60')),
        'mock_delay': float(os.getenv('MOCK_ENHANCE_DELAY', '1.0')),
        'api_url': os.getenv('ENHANCE_API_URL', 'http://localhost:5000/api/enhance'),
        'max_data_uri_length': 20 * 1024 * 1024
    }

    # Upload Settings
    UPLOAD_SETTINGS = {
        'max_file_size': 15 * 1024 * 1024,
        'compress_max_mb': 5,
        'compress_quality': 0.7,
        'guest_history_limit': 3
    }

    # Login cookies
    COOKIE_SETTINGS = {
        'prefix': os.getenv('COOKIE_PREFIX', 'photo-enhance-ai/'),
        'password': os.getenv('COOKIE_PASSWORD'),
        'max_age_days': int(os.getenv('LOGIN_COOKIE_DAYS', '7'))
    }

    # Logging Settings
    LOGGING_CONFIG = {
        'level': os.getenv('LOG_LEVEL', 'INFO'),
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'file': os.getenv('LOG_FILE')
    }

    # Error Handling
    ERROR_HANDLING = {
        'show_detailed_errors': DEBUG_MODE
    }

    @classmethod
    def is_production(cls):
        """Check if running in production environment"""
        return cls.APP_ENV == 'production'

    @classmethod
    def use_mock(cls) -> bool:
        """Mock enhancement outside production unless USE_REAL_API is set"""
        return not cls.is_production() and os.getenv('USE_REAL_API', 'false').lower() != 'true'

    @classmethod
    def validate_config(cls) -> bool:
        """Validate the configuration"""
        try:
            # Check required Firebase settings
            required_firebase = ['projectId', 'storageBucket']
            for key in required_firebase:
                if not cls.FIREBASE_CONFIG.get(key):
                    logger.error(f"Missing required Firebase setting: {key}")
                    return False

            if not cls.STRIPE_SETTINGS['secret_key']:
                logger.error("Missing Stripe secret key")
                return False

            if cls.is_production() and not cls.STRIPE_SETTINGS['webhook_secret']:
                logger.error("Missing Stripe webhook secret")
                return False

            if not cls.ENHANCEMENT_SETTINGS['openai_api_key']:
                logger.warning("OPENAI_API_KEY not set, enhancements will always use the mock")

            return True
        except Exception as e:
            logger.error(f"Configuration validation failed: {str(e)}")
            return False

    @classmethod
    def get_firebase_config(cls):
        """Get Firebase configuration"""
        return cls.FIREBASE_CONFIG

    @classmethod
    def get_enhancement_settings(cls):
        """Get enhancement settings"""
        return cls.ENHANCEMENT_SETTINGS.copy()

    @classmethod
    def get_upload_settings(cls):
        """Get upload settings"""
        return cls.UPLOAD_SETTINGS.copy()

    @classmethod
    def configure_logging(cls):
        """Apply LOGGING_CONFIG to the root logger"""
        root = logging.getLogger()
        if getattr(root, '_photo_enhance_configured', False):
            return

        logging.basicConfig(
            level=cls.LOGGING_CONFIG['level'],
            format=cls.LOGGING_CONFIG['format']
        )

        if cls.LOGGING_CONFIG['file']:
            handler = RotatingFileHandler(cls.LOGGING_CONFIG['file'], maxBytes=1024 * 1024, backupCount=5)
            handler.setFormatter(logging.Formatter(cls.LOGGING_CONFIG['format']))
            root.addHandler(handler)

        root._photo_enhance_configured = True
