"""
Error handling utilities for logistics object forms.
Logs recoverable errors and turns them into user-friendly messages.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
import streamlit as st

from .exceptions import CoercionAnomaly, LogisticsFormError, OptionLoadError, SchemaLoadError

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    SCHEMA = "schema"
    OPTIONS = "options"
    COERCION = "coercion"
    NETWORK = "network"
    USER_INPUT = "user_input"
    SYSTEM = "system"


class ErrorHandler:
    """Error handling for logistics object forms."""

    @staticmethod
    def classify(error: Exception) -> str:
        """Pick the ErrorType for an exception."""
        if isinstance(error, SchemaLoadError):
            return ErrorType.SCHEMA
        if isinstance(error, OptionLoadError):
            if isinstance(error.original_error, httpx.HTTPError):
                return ErrorType.NETWORK
            return ErrorType.OPTIONS
        if isinstance(error, CoercionAnomaly):
            return ErrorType.COERCION
        if isinstance(error, (ValueError, TypeError)):
            return ErrorType.USER_INPUT
        return ErrorType.SYSTEM

    @staticmethod
    def log_recoverable(error: Exception, context: str) -> Dict[str, Any]:
        """
        Log an error that does not interrupt the editing session.

        Args:
            error: The exception that occurred
            context: Context where the error occurred

        Returns:
            Error details suitable for display or analytics
        """
        error_type = ErrorHandler.classify(error)
        if error_type == ErrorType.COERCION:
            logger.warning(f"{context}: {error}")
        else:
            logger.error(f"Recoverable error in {context}: {error}")

        if isinstance(error, LogisticsFormError):
            details = error.get_full_details()
        else:
            details = {
                'error_type': type(error).__name__,
                'message': str(error),
                'context': {},
                'recovery_suggestions': []
            }
        details['category'] = error_type
        details['where'] = context
        return details

    @staticmethod
    def get_user_friendly_message(error: Exception, error_type: Optional[str] = None) -> str:
        """Generate a user-friendly message for an error."""
        error_type = error_type or ErrorHandler.classify(error)

        error_messages = {
            ErrorType.SCHEMA: {
                json.JSONDecodeError: "📋 Schema file contains invalid JSON. Please check the schema file.",
                FileNotFoundError: "📋 Schema file could not be found. Some fields are not shown.",
                "default": "📋 A schema could not be loaded. Fields using it are not shown."
            },
            ErrorType.OPTIONS: {
                "default": "📚 Options could not be loaded. You can enter the value directly."
            },
            ErrorType.NETWORK: {
                httpx.TimeoutException: "⏱️ The catalog did not answer in time. You can enter the value directly.",
                "default": "🌐 The catalog is unreachable. You can enter the value directly."
            },
            ErrorType.COERCION: {
                "default": "⚠️ The value could not be converted and was stored as NaN."
            },
            ErrorType.USER_INPUT: {
                "default": "⚠️ Input error. Please review your data and try again."
            },
            ErrorType.SYSTEM: {
                "default": "💻 An unexpected error occurred."
            }
        }

        type_messages = error_messages.get(error_type, error_messages[ErrorType.SYSTEM])

        cause = getattr(error, 'original_error', None) or error
        for exception_type, message in type_messages.items():
            if exception_type != "default" and isinstance(cause, exception_type):
                return message

        return type_messages["default"]

    @staticmethod
    def display_error(error: Exception, context: str, show_details: bool = False) -> None:
        """Log an error and show it in the Streamlit page."""
        details = ErrorHandler.log_recoverable(error, context)
        message = ErrorHandler.get_user_friendly_message(error, details['category'])

        if details['category'] == ErrorType.COERCION:
            st.warning(message)
        else:
            st.error(message)

        if show_details:
            with st.expander("🔍 Technical Details"):
                st.write(f"**Error Type:** {details['error_type']}")
                st.write(f"**Context:** {context}")
                st.write(f"**Error Message:** {details['message']}")
                for suggestion in details['recovery_suggestions']:
                    st.write(f"• {suggestion}")

    @staticmethod
    def display_errors(errors: List[Exception], context: str) -> None:
        for error in errors:
            ErrorHandler.display_error(error, context)
