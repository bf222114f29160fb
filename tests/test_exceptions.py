"""Tests for the error taxonomy and its exit codes."""

from __future__ import annotations

import pytest

from httpstash import exit_codes
from httpstash.exceptions import (
    ConfigError,
    DecodeError,
    ErrorKind,
    HttpstashError,
    NotFoundError,
    RequestError,
    TransportError,
    UnauthorizedError,
    UnexpectedStatusError,
    UnknownError,
)


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        "exc, code",
        [
            (ConfigError(), exit_codes.EXIT_GENERIC_FAILURE),
            (UnauthorizedError(), exit_codes.EXIT_AUTH_FAILURE),
            (NotFoundError(), exit_codes.EXIT_NOT_FOUND),
            (TransportError(), exit_codes.EXIT_CONNECTION_ERROR),
            (DecodeError(), exit_codes.EXIT_DECODE_ERROR),
            (UnexpectedStatusError(418), exit_codes.EXIT_UNEXPECTED_STATUS),
        ],
    )
    def test_exit_codes(self, exc: HttpstashError, code: int) -> None:
        assert exc.exit_code == code

    def test_default_message(self) -> None:
        assert str(NotFoundError()) == "Not Found: The requested resource could not be found"
        assert str(TransportError("dns failed")) == "dns failed"

    def test_exit_code_override(self) -> None:
        assert DecodeError(exit_code=99).exit_code == 99
        assert DecodeError().exit_code == exit_codes.EXIT_DECODE_ERROR

    def test_unexpected_status_carries_code(self) -> None:
        err = UnexpectedStatusError(-1)
        assert err.status_code == -1
        assert str(err) == "Unexpected status code: -1"

    def test_unknown_keeps_cause(self) -> None:
        cause = KeyError("x")
        err = UnknownError(cause)
        assert err.cause is cause
        assert err.kind is ErrorKind.UNKNOWN

    def test_every_request_error_is_an_httpstash_error(self) -> None:
        assert issubclass(RequestError, HttpstashError)
        assert not issubclass(ConfigError, RequestError)
