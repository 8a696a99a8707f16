"""
Unit tests for the Streamlit page's sidebar handling.
"""

import io
from unittest.mock import MagicMock

import pytest

import streamlit_app


@pytest.fixture
def mock_st(monkeypatch):
    """Streamlit stand-in for a sidebar that switches to the Piece form."""
    mock = MagicMock()
    mock.session_state.object_type_id = None
    mock.selectbox.return_value = "LogisticsObjects.Piece"
    mock.button.return_value = False
    monkeypatch.setattr(streamlit_app, "st", mock)

    schemas = MagicMock()
    schemas.list_object_types.return_value = ["LogisticsObjects.Piece", "LogisticsObjects.Shipment"]
    monkeypatch.setattr(streamlit_app, "schema_store", lambda: schemas)
    return mock


@pytest.fixture
def start_session(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(streamlit_app, "start_session", mock)
    return mock


@pytest.fixture
def display_error(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(streamlit_app.ErrorHandler, "display_error", mock)
    return mock


class TestLoadUploadedRecord:
    """Test cases for parsing an uploaded record."""

    def test_valid_record(self, display_error):
        record = streamlit_app.load_uploaded_record(io.BytesIO(b'{"goodsDescription": "Parts"}'))

        assert record == {"goodsDescription": "Parts"}
        display_error.assert_not_called()

    def test_invalid_json_is_reported(self, display_error):
        assert streamlit_app.load_uploaded_record(io.BytesIO(b'{"goodsDescription": ')) is None
        display_error.assert_called_once()

    def test_non_object_is_reported(self, display_error):
        assert streamlit_app.load_uploaded_record(io.BytesIO(b'[1, 2]')) is None
        assert isinstance(display_error.call_args[0][0], ValueError)


class TestRenderSidebar:
    """Test cases for starting a session from the sidebar."""

    def test_bad_upload_does_not_restart_the_session(self, mock_st, start_session, display_error):
        mock_st.file_uploader.return_value = io.BytesIO(b"not json")

        streamlit_app.render_sidebar()

        display_error.assert_called_once()
        start_session.assert_not_called()
        mock_st.rerun.assert_not_called()

    def test_valid_upload_starts_the_session(self, mock_st, start_session, display_error):
        mock_st.file_uploader.return_value = io.BytesIO(b'{"goodsDescription": "Parts"}')

        streamlit_app.render_sidebar()

        start_session.assert_called_once_with("LogisticsObjects.Piece", {"goodsDescription": "Parts"})
        mock_st.rerun.assert_called_once()

    def test_no_upload_starts_an_empty_session(self, mock_st, start_session, display_error):
        mock_st.file_uploader.return_value = None

        streamlit_app.render_sidebar()

        start_session.assert_called_once_with("LogisticsObjects.Piece", None)
