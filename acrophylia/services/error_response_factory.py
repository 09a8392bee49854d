"""
Error Response Factory for Acrophylia

Provides standardized error and success response creation, and the decorator
that turns handler exceptions into an ``error`` event for the requesting session.
"""

import logging
import traceback
from functools import wraps
from typing import Dict, Optional, Tuple

from flask_socketio import emit

from acrophylia.core.errors import ErrorCode, ValidationError

logger = logging.getLogger(__name__)


class ErrorResponseFactory:
    """Factory responsible for creating standardized error and success responses."""

    def create_success_response(self, data: Dict) -> Dict:
        """
        Create standardized success response.

        Args:
            data: Response data

        Returns:
            Standardized success response
        """
        return {
            "success": True,
            "data": data
        }

    def create_error_response(self, code: ErrorCode, message: str, details: Optional[Dict] = None) -> Dict:
        """
        Create standardized error response.

        Args:
            code: Error code enum
            message: Human-readable error message
            details: Optional additional error details

        Returns:
            Standardized error response
        """
        return {
            "success": False,
            "error": {
                "code": code.value,
                "message": message,
                "details": details or {}
            }
        }

    def emit_error(self, code: ErrorCode, message: str, details: Optional[Dict] = None):
        """
        Emit standardized error response to the requesting session.

        Must be called from within a Socket.IO event context.
        """
        error_response = self.create_error_response(code, message, details)

        logger.warning(f"Emitting error: {code.value} - {message}")
        emit('error', error_response)

    def emit_validation_error(self, error: ValidationError):
        self.emit_error(error.code, error.message, error.details)

    def handle_exception(self, e: Exception, context: str = "Unknown") -> Tuple[ErrorCode, str]:
        """
        Map an exception to the error code and message reported to the client.

        Args:
            e: Exception instance
            context: Context where the exception occurred

        Returns:
            Tuple of (error_code, error_message)
        """
        if isinstance(e, ValidationError):
            return e.code, e.message

        logger.error(f"Unexpected exception in {context}: {str(e)}")
        logger.error(f"Exception traceback: {traceback.format_exc()}")

        # Return generic internal error
        return ErrorCode.INTERNAL_ERROR, "An internal error occurred"


def with_error_handling(func):
    """
    Decorator for Socket.IO event handlers to provide consistent error handling.

    ValidationError is reported to the requesting session; anything else is
    logged and reported as INTERNAL_ERROR. Nothing propagates to the transport.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ValidationError as e:
            factory = ErrorResponseFactory()
            factory.emit_validation_error(e)
        except Exception as e:
            factory = ErrorResponseFactory()
            error_code, error_message = factory.handle_exception(e, func.__name__)
            factory.emit_error(error_code, error_message)

    return wrapper
