"""
Unit tests for shared config, errors and logging.
"""

import json
import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from shared.config import IdentityClientSettings, get_settings
from shared.errors import (
    BadOAuthToken,
    ConfigurationError,
    ErrorResponse,
    IdentityClientException,
    RemoteError,
    TransportError,
    ValidationError,
)
from shared.logging import (
    add_correlation_context,
    add_service_context,
    clear_context,
    configure_logging,
    get_logger,
    request_id_var,
    set_request_id,
)


class TestSettings:
    """Test cases for IdentityClientSettings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("IDENTITY_CONNECT_TIMEOUT", raising=False)
        monkeypatch.delenv("IDENTITY_READ_TIMEOUT", raising=False)

        settings = get_settings()

        assert settings.connect_timeout == 10.0
        assert settings.read_timeout == 30.0
        assert settings.service_name == "identity"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("IDENTITY_CONNECT_TIMEOUT", "2.5")
        monkeypatch.setenv("IDENTITY_LOG_LEVEL", "debug")

        settings = get_settings()

        assert settings.connect_timeout == 2.5
        assert settings.log_level == "debug"

    def test_keyword_overrides_win(self, monkeypatch):
        monkeypatch.setenv("IDENTITY_READ_TIMEOUT", "12")

        assert get_settings(read_timeout=3.0).read_timeout == 3.0

    def test_timeouts_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            IdentityClientSettings(connect_timeout=0)


class TestErrors:
    """Test cases for the error taxonomy."""

    @pytest.mark.parametrize("error, code", [
        (BadOAuthToken(), "BAD_OAUTH_TOKEN"),
        (RemoteError(502, "Bad Gateway"), "REMOTE_ERROR"),
        (TransportError(), "TRANSPORT_ERROR"),
        (ConfigurationError(), "CONFIGURATION_ERROR"),
        (ValidationError(), "VALIDATION_ERROR"),
    ])
    def test_codes(self, error, code):
        assert isinstance(error, IdentityClientException)
        assert error.code == code
        assert error.to_response().code == code

    def test_to_response(self):
        error = RemoteError(502, "Bad Gateway")

        response = error.to_response()

        assert isinstance(response, ErrorResponse)
        assert response.message == "Response error: 502 Bad Gateway"
        assert response.details == {"status_code": 502, "body": "Bad Gateway"}

    def test_details_default_to_empty(self):
        assert TransportError("IO error: refused").details == {}


class TestLogging:
    """Test cases for logging helpers."""

    def test_service_taken_from_logger_name(self):
        event = add_service_context(None, "info", {"logger": "identity.client"})

        assert event["service"] == "identity"

    def test_request_id_added(self):
        request_id = set_request_id("req-1")
        try:
            event = add_correlation_context(None, "info", {})
        finally:
            clear_context()

        assert request_id == "req-1"
        assert event["request_id"] == "req-1"
        assert request_id_var.get() is None

    def test_request_id_generated(self):
        try:
            request_id = set_request_id()
        finally:
            clear_context()

        assert len(request_id) == 36

    def test_no_request_id_outside_context(self):
        assert "request_id" not in add_correlation_context(None, "info", {})

    def test_configure_logging(self, caplog):
        configure_logging("identity", "warning")
        caplog.set_level(logging.WARNING)

        logger = get_logger("identity.test")
        logger.info("suppressed")
        logger.warning("emitted", answer=42)

        assert "emitted" in caplog.text
        assert "suppressed" not in caplog.text

    def test_timestamp_kept_in_iso_format(self, caplog):
        """Test events carry the ISO timestamp rather than an epoch number."""
        configure_logging("identity", "info")
        caplog.set_level(logging.INFO)

        get_logger("identity.test").info("stamped")

        event = json.loads(caplog.records[-1].getMessage())
        assert event["event"] == "stamped"
        assert isinstance(event["timestamp"], str)
        assert "T" in event["timestamp"]
