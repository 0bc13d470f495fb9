"""Tests for IOStack client exceptions."""

import pytest

from iostack.domain.exceptions import (
    IOStackError,
    PlatformRequestError,
    RequestTimeoutError,
    StreamDecodeError,
    StreamProtocolError,
    TokenClaimError,
)


class TestIOStackError:
    """Tests for the exception hierarchy."""

    def test_message_kept_as_attribute(self) -> None:
        """Test that the message is available without str()."""
        error = IOStackError("something broke")

        assert error.message == "something broke"
        assert str(error) == "something broke"

    def test_new_errors_are_not_reported(self) -> None:
        """Test that the reported flag starts cleared."""
        assert PlatformRequestError("x").reported is False

    @pytest.mark.parametrize(
        "error_class",
        [PlatformRequestError, RequestTimeoutError, StreamDecodeError, StreamProtocolError],
    )
    def test_business_errors_are_reportable(self, error_class: type[IOStackError]) -> None:
        """Test that everything except token claim errors goes to the handlers."""
        assert error_class.reportable is True
        assert issubclass(error_class, IOStackError)

    def test_token_claim_error_not_reportable(self) -> None:
        """Test that token malformation is never routed to error handlers."""
        assert TokenClaimError.reportable is False

    def test_platform_request_error_status_code(self) -> None:
        error = PlatformRequestError("Unauthorized:bad key", status_code=401)

        assert error.status_code == 401

    def test_timeout_error_is_a_timeout(self) -> None:
        """Test that callers can catch the builtin TimeoutError."""
        error = RequestTimeoutError("retrieve access token timed out after 30s", timeout=30.0)

        assert isinstance(error, TimeoutError)
        assert error.timeout == 30.0
