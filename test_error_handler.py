"""
Unit tests for error_handler module.
"""

import json
from unittest.mock import MagicMock, patch

import httpx

from logistics_forms.error_handler import ErrorHandler, ErrorType
from logistics_forms.exceptions import CoercionAnomaly, OptionLoadError, SchemaLoadError


class TestClassify:
    """Test cases for error classification."""

    def test_known_errors(self):
        assert ErrorHandler.classify(SchemaLoadError("Embedded.Value")) == ErrorType.SCHEMA
        assert ErrorHandler.classify(OptionLoadError("unit")) == ErrorType.OPTIONS
        assert ErrorHandler.classify(CoercionAnomaly("x", "integer")) == ErrorType.COERCION
        assert ErrorHandler.classify(ValueError("bad")) == ErrorType.USER_INPUT
        assert ErrorHandler.classify(RuntimeError("boom")) == ErrorType.SYSTEM

    def test_http_causes_are_network_errors(self):
        error = OptionLoadError("ofShipment", httpx.ConnectError("refused"))
        assert ErrorHandler.classify(error) == ErrorType.NETWORK


class TestUserFriendlyMessages:
    """Test cases for user-friendly messages."""

    def test_schema_messages_use_the_cause(self):
        invalid = SchemaLoadError("x", json.JSONDecodeError("Invalid JSON", "doc", 0))
        missing = SchemaLoadError("x", FileNotFoundError("x.json"))

        assert "invalid json" in ErrorHandler.get_user_friendly_message(invalid).lower()
        assert "could not be found" in ErrorHandler.get_user_friendly_message(missing).lower()
        assert "📋" in ErrorHandler.get_user_friendly_message(SchemaLoadError("x"))

    def test_network_timeout_message(self):
        error = OptionLoadError("ofShipment", httpx.ReadTimeout("slow"))
        assert "did not answer in time" in ErrorHandler.get_user_friendly_message(error)

    def test_option_message_suggests_direct_input(self):
        message = ErrorHandler.get_user_friendly_message(OptionLoadError("unit"))
        assert "enter the value directly" in message.lower()


class TestLogRecoverable:
    """Test cases for log_recoverable."""

    def test_details_of_form_errors(self, caplog):
        details = ErrorHandler.log_recoverable(SchemaLoadError("Embedded.Value"), "schema resolution")

        assert details['error_type'] == 'SchemaLoadError'
        assert details['category'] == ErrorType.SCHEMA
        assert details['where'] == 'schema resolution'
        assert details['context']['schema_id'] == 'Embedded.Value'
        assert "Embedded.Value" in caplog.text

    def test_details_of_plain_errors(self):
        details = ErrorHandler.log_recoverable(RuntimeError("boom"), "app")

        assert details['error_type'] == 'RuntimeError'
        assert details['message'] == 'boom'
        assert details['recovery_suggestions'] == []


class TestDisplayError:
    """Test cases for showing errors in the page."""

    @patch('streamlit.warning')
    @patch('streamlit.error')
    def test_coercion_is_shown_as_warning(self, mock_error, mock_warning):
        ErrorHandler.display_error(CoercionAnomaly("x", "integer"), "value conversion")

        mock_warning.assert_called_once()
        mock_error.assert_not_called()

    @patch('streamlit.write')
    @patch('streamlit.expander')
    @patch('streamlit.error')
    def test_details_are_shown_in_expander(self, mock_error, mock_expander, mock_write):
        mock_expander.return_value = MagicMock()

        ErrorHandler.display_error(SchemaLoadError("Embedded.Value"), "schema", show_details=True)

        mock_error.assert_called_once()
        mock_expander.assert_called_once()
        assert any("SchemaLoadError" in str(call) for call in mock_write.call_args_list)

    @patch('streamlit.error')
    def test_display_errors_shows_each(self, mock_error):
        ErrorHandler.display_errors([OptionLoadError("a"), OptionLoadError("b")], "option loading")

        assert mock_error.call_count == 2
