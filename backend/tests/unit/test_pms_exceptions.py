"""Tests for the PMS exception hierarchy."""

from integrations.exceptions import (
    PMSAPIError,
    PMSAuthError,
    PMSConnectionError,
    PMSDataError,
    PMSError,
)


class TestPMSExceptions:
    def test_all_errors_share_base(self):
        for cls in (PMSAuthError, PMSConnectionError, PMSAPIError, PMSDataError):
            assert issubclass(cls, PMSError)

    def test_tenant_carried(self):
        error = PMSAuthError("denied", tenant="acme")

        assert error.tenant == "acme"
        assert str(error) == "denied"

    def test_api_error_retriable_by_status(self):
        assert PMSAPIError("x", status_code=429).retriable
        assert PMSAPIError("x", status_code=502).retriable
        assert not PMSAPIError("x", status_code=404).retriable
        assert not PMSAPIError("x").retriable

    def test_api_error_message_includes_status(self):
        error = PMSAPIError("Server error", status_code=500, response_body="boom")

        assert str(error) == "Server error (HTTP 500)"
        assert error.response_body == "boom"

    def test_connection_error_retriable_by_default(self):
        assert PMSConnectionError("timeout").retriable
        assert not PMSConnectionError("bad host", retriable=False).retriable
