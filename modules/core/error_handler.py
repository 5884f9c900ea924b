"""
Error handling module for the Photo Enhance AI application.

Every failure the application reports is an AppError carrying a message that
is safe to show to users, a machine readable error_code and optional details
for the logs. Subclasses set the default code and the HTTP status used when
the error reaches the API.
"""

from config.environment import Environment
import logging
import traceback
from functools import wraps

logger = logging.getLogger(__name__)

class AppError(Exception):
    """Base exception class for application errors"""
    default_code = 'APP_ERROR'
    http_status = 500

    def __init__(self, message, error_code=None, details=None):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self, include_details=False):
        data = {'error': self.message, 'code': self.error_code}
        if include_details and self.details:
            data['details'] = self.details
        return data

class DatabaseError(AppError):
    """Firestore reads and writes"""
    default_code = 'DATABASE_ERROR'

class AuthenticationError(AppError):
    """Sign-in, sign-up and token verification"""
    default_code = 'AUTH_ERROR'
    http_status = 401

class ValidationError(AppError):
    """Rejected input: file type or size, unknown plan"""
    default_code = 'VALIDATION_ERROR'
    http_status = 400

class NoCreditsError(AppError):
    """Raised when the user has no enhancement credits left"""
    default_code = 'NO_CREDITS'
    http_status = 402

    def __init__(self, message="You have no credits left. Please purchase a subscription.", **kwargs):
        super().__init__(message, **kwargs)

class StorageError(AppError):
    """Blob storage upload/download errors"""
    default_code = 'STORAGE_ERROR'
    http_status = 502

class EnhancementError(AppError):
    """Errors talking to the enhancement endpoint"""
    default_code = 'ENHANCEMENT_ERROR'
    http_status = 502

class ImageProcessingError(AppError):
    """Image decoding/encoding errors"""
    default_code = 'IMAGE_ERROR'
    http_status = 422

class PaymentError(AppError):
    """Payment processor errors"""
    default_code = 'PAYMENT_ERROR'
    http_status = 502

def handle_error(func=None, *, wrap_as=AppError, message="An unexpected error occurred"):
    """
    Decorator for consistent error handling

    AppErrors are logged and re-raised unchanged; any other exception is
    logged and re-raised as wrap_as(message) chained to the original.

    Usable bare (@handle_error) or with arguments
    (@handle_error(wrap_as=DatabaseError, message="Failed to read profile")).
    """
    def decorator(inner):
        @wraps(inner)
        def wrapper(*args, **kwargs):
            try:
                return inner(*args, **kwargs)
            except AppError as e:
                logger.error(f"{inner.__qualname__} failed: {e.message}")
                if Environment.DEBUG_MODE:
                    logger.error(f"Error details: {e.details}")
                raise
            except Exception as e:
                logger.error(f"Unexpected error in {inner.__qualname__}: {str(e)}")
                if Environment.DEBUG_MODE:
                    logger.error(f"Traceback: {traceback.format_exc()}")
                error_code = "UNEXPECTED_ERROR" if wrap_as is AppError else None
                raise wrap_as(message, error_code=error_code, details=str(e)) from e
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator

def log_error(error, context=None):
    """
    Log an error with context

    Args:
        error: The error to log
        context: Additional context information

    Returns:
        dict: success flag, message, error_code and (in debug mode) details,
        ready for display in the UI
    """
    error_message = getattr(error, 'message', None) or str(error)
    logged = f"{error_message} | Context: {context}" if context else error_message

    logger.error(logged)
    if Environment.DEBUG_MODE:
        logger.error(f"Traceback: {traceback.format_exc()}")

    return {
        'success': False,
        'message': error_message,
        'error_code': getattr(error, 'error_code', None) or 'UNKNOWN_ERROR',
        'details': getattr(error, 'details', None) if Environment.DEBUG_MODE else None
    }

def error_response(error):
    """(payload, status) for an error that reached an API route"""
    if isinstance(error, AppError):
        return error.to_dict(include_details=Environment.ERROR_HANDLING['show_detailed_errors']), error.http_status
    return {'error': "Internal server error", 'code': 'UNEXPECTED_ERROR'}, 500
