"""
Unit tests for core functionality of the Photo Enhance AI application.
"""

from unittest.mock import patch
import pytest
from modules.core.error_handler import (
    AppError,
    handle_error,
    log_error,
    ValidationError,
    DatabaseError,
    NoCreditsError,
    error_response
)
from modules.core.models import (
    PhotoEnhancement,
    Subscription,
    EnhancementStep,
    PRICING_PLANS,
    credits_for_price
)
from config.feature_flags import FeatureFlags
from config.environment import Environment

def test_handle_error():
    """Test error handling decorator"""

    @handle_error
    def raises_app_error():
        raise ValidationError("Test validation error")

    @handle_error
    def raises_unexpected():
        raise KeyError("missing")

    @handle_error
    def succeeds():
        return 42

    # Application errors pass through unchanged
    with pytest.raises(ValidationError):
        raises_app_error()

    # Anything else is wrapped
    with pytest.raises(AppError) as exc_info:
        raises_unexpected()
    assert exc_info.value.error_code == "UNEXPECTED_ERROR"
    assert isinstance(exc_info.value.__cause__, KeyError)

    assert succeeds() == 42

    @handle_error(wrap_as=DatabaseError, message="Failed to read profile")
    def read_profile():
        raise RuntimeError("deadline exceeded")

    with pytest.raises(DatabaseError) as exc_info:
        read_profile()
    assert exc_info.value.message == "Failed to read profile"
    assert exc_info.value.error_code == "DATABASE_ERROR"
    assert exc_info.value.details == "deadline exceeded"

def test_error_handling():
    """Test error classes"""
    with pytest.raises(AppError) as exc_info:
        raise AppError("Test error", "TEST_ERROR", {"detail": "test"})
    assert str(exc_info.value) == "Test error"
    assert exc_info.value.error_code == "TEST_ERROR"
    assert exc_info.value.details == {"detail": "test"}

    error = NoCreditsError()
    assert error.message == "You have no credits left. Please purchase a subscription."
    assert error.error_code == "NO_CREDITS"

    with pytest.raises(DatabaseError):
        raise DatabaseError("Database error")

def test_error_response():
    """API payloads and status codes for errors"""
    with patch.dict(Environment.ERROR_HANDLING, {'show_detailed_errors': False}):
        assert error_response(NoCreditsError()) == (
            {'error': "You have no credits left. Please purchase a subscription.", 'code': 'NO_CREDITS'}, 402)
        assert error_response(ValidationError("Only image files are allowed."))[1] == 400
        payload, status = error_response(DatabaseError("Failed", details="secret"))
        assert status == 500
        assert 'details' not in payload
        assert error_response(KeyError("x")) == ({'error': "Internal server error", 'code': 'UNEXPECTED_ERROR'}, 500)

    with patch.dict(Environment.ERROR_HANDLING, {'show_detailed_errors': True}):
        assert error_response(DatabaseError("Failed", details="secret"))[0]['details'] == "secret"

def test_error_logging():
    """Test error logging functionality"""
    result = log_error(ValidationError("Bad input", error_code="BAD_INPUT"), {'user_id': 'user_123'})
    assert result['success'] is False
    assert result['error_code'] == "BAD_INPUT"
    assert result['message'] == "Bad input"

    result = log_error(ValueError("Test error"))
    assert result['message'] == "Test error"
    assert result['error_code'] == "UNKNOWN_ERROR"

def test_feature_flags():
    """Test feature flag functionality"""
    # Test core features
    assert FeatureFlags.is_feature_enabled('photo_enhancement') is True
    assert FeatureFlags.is_feature_enabled('webhook_idempotency') is True

    # Core features cannot be changed
    assert FeatureFlags.set_feature_state('credit_purchase', False) is False

    # Test unknown feature
    assert FeatureFlags.is_feature_enabled('unknown_feature') is False

    # Toggle an experimental feature
    with patch.dict(FeatureFlags.EXPERIMENTAL_FEATURES):
        assert FeatureFlags.set_feature_state('guest_enhancement', False) is True
        assert FeatureFlags.is_feature_enabled('guest_enhancement') is False
        assert 'guest_enhancement' not in FeatureFlags.get_enabled_features()

        FeatureFlags.set_feature_state('guest_enhancement', True)
        assert FeatureFlags.is_feature_enabled('guest_enhancement') is True

    # Dependencies disable dependents
    with patch.dict(FeatureFlags.CORE_FEATURES, {'photo_enhancement': False}), \
            patch.dict(FeatureFlags.EXPERIMENTAL_FEATURES, {'image_regeneration': True}):
        assert FeatureFlags.is_feature_enabled('image_regeneration') is False

def test_environment_settings():
    """Test environment settings"""
    assert isinstance(Environment.is_production(), bool)

    firebase_config = Environment.get_firebase_config()
    assert all(key in firebase_config for key in [
        'apiKey', 'authDomain', 'projectId',
        'storageBucket', 'messagingSenderId', 'appId'
    ])

    upload_settings = Environment.get_upload_settings()
    assert upload_settings['max_file_size'] == 15 * 1024 * 1024

    # Returned settings are copies
    upload_settings['max_file_size'] = 0
    assert Environment.UPLOAD_SETTINGS['max_file_size'] == 15 * 1024 * 1024

def test_use_mock():
    """Mock enhancement is the default outside production"""
    with patch.object(Environment, 'APP_ENV', 'development'), patch.dict('os.environ', {'USE_REAL_API': 'false'}):
        assert Environment.use_mock() is True
    with patch.object(Environment, 'APP_ENV', 'development'), patch.dict('os.environ', {'USE_REAL_API': 'true'}):
        assert Environment.use_mock() is False
    with patch.object(Environment, 'APP_ENV', 'production'):
        assert Environment.use_mock() is False

def test_environment_validation():
    """Test configuration validation"""
    config = {'projectId': 'test-project', 'storageBucket': 'test.appspot.com'}
    stripe_settings = {**Environment.STRIPE_SETTINGS, 'secret_key': 'sk_test', 'webhook_secret': None}

    with patch.object(Environment, 'FIREBASE_CONFIG', config), \
            patch.object(Environment, 'STRIPE_SETTINGS', stripe_settings), \
            patch.object(Environment, 'APP_ENV', 'development'):
        assert Environment.validate_config() is True

    with patch.object(Environment, 'FIREBASE_CONFIG', config), \
            patch.object(Environment, 'STRIPE_SETTINGS', stripe_settings), \
            patch.object(Environment, 'APP_ENV', 'production'):
        assert Environment.validate_config() is False

    with patch.object(Environment, 'FIREBASE_CONFIG', {'projectId': None}):
        assert Environment.validate_config() is False

def test_pricing_plans():
    """Test credit amounts per plan"""
    assert [plan.credits for plan in PRICING_PLANS.values()] == [5, 10, 15, 20]
    assert credits_for_price('price_premium') == 15
    assert credits_for_price('price_unknown') == 0
    assert credits_for_price(None) == 0

def test_models_round_trip_camel_case():
    """Firestore documents use camelCase keys"""
    subscription = Subscription(user_id='user_123', price_id='price_basic', remaining_credits=5)
    doc = subscription.to_dict()
    assert doc['userId'] == 'user_123'
    assert doc['remainingCredits'] == 5
    assert doc['status'] == 'active'
    assert 'id' not in doc
    assert Subscription.from_dict(doc).remaining_credits == 5

    enhancement = PhotoEnhancement(user_id='user_123', original_url='https://storage.test/a.jpg')
    doc = enhancement.to_dict()
    assert doc['status'] == 'processing'
    assert doc['step'] == EnhancementStep.AWAITING_ENHANCEMENT.value
    assert doc['creditCharged'] is False

def test_require_feature():
    """Disabled toggles raise FEATURE_DISABLED"""
    FeatureFlags.require_feature('photo_enhancement')

    with patch.dict(FeatureFlags.EXPERIMENTAL_FEATURES, {'guest_enhancement': False}):
        with pytest.raises(ValidationError) as exc_info:
            FeatureFlags.require_feature('guest_enhancement')
    assert exc_info.value.error_code == "FEATURE_DISABLED"
    assert exc_info.value.message == "Guest enhancement is disabled"
