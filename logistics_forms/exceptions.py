"""
Custom exception classes for logistics object forms.

Every error raised by the core is recoverable: schema failures drop a single
field, option failures fall back to direct input and coercion anomalies are
only logged.
"""

from typing import Optional, Dict, Any, List


class LogisticsFormError(Exception):
    """
    Base exception for logistics form errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class SchemaLoadError(LogisticsFormError):
    """
    Exception raised when a top-level or embedded schema cannot be loaded.

    This includes missing files, parse errors and documents without valid columns.
    """

    def __init__(self, schema_id: str, original_error: Optional[Exception] = None,
                 message: Optional[str] = None):
        self.schema_id = schema_id
        self.original_error = original_error

        if message is None:
            if original_error is not None:
                message = f"Failed to load schema '{schema_id}': {original_error}"
            else:
                message = f"Failed to load schema '{schema_id}'"

        context = {
            'schema_id': schema_id,
            'original_error_type': type(original_error).__name__ if original_error else None,
            'original_error_message': str(original_error) if original_error else None
        }

        recovery_suggestions = [
            f"Check that a schema file exists for '{schema_id}'",
            "Verify the schema document contains a 'columns' list",
            "Fields using this schema are omitted from the form"
        ]

        super().__init__(message, context, recovery_suggestions)


class OptionLoadError(LogisticsFormError):
    """
    Exception raised when reference options cannot be loaded.

    Covers catalog network failures, malformed responses and missing codelists.
    """

    def __init__(self, field_name: str, original_error: Optional[Exception] = None,
                 message: Optional[str] = None):
        self.field_name = field_name
        self.original_error = original_error

        if message is None:
            if original_error is not None:
                message = f"Failed to load options for '{field_name}': {original_error}"
            else:
                message = f"Failed to load options for '{field_name}'"

        context = {
            'field_name': field_name,
            'original_error_type': type(original_error).__name__ if original_error else None,
            'original_error_message': str(original_error) if original_error else None
        }

        recovery_suggestions = [
            "Check the catalog service URL in config.yaml",
            "Enter the reference identifier directly instead"
        ]

        super().__init__(message, context, recovery_suggestions)


class CoercionAnomaly(LogisticsFormError):
    """
    Soft failure recorded when a numeric or date input does not parse.

    The codec stores the sentinel "NaN" instead of raising.
    """

    def __init__(self, value: Any, scalar_kind: str, message: Optional[str] = None):
        self.value = value
        self.scalar_kind = scalar_kind

        if message is None:
            message = f"Could not coerce {value!r} to {scalar_kind}; stored 'NaN'"

        super().__init__(
            message,
            {'value': repr(value), 'scalar_kind': scalar_kind},
            [f"Enter a valid {scalar_kind} value"]
        )
