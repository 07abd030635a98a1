"""Exception hierarchy for spotify_web_api.

Every failure surfaced by the library is an instance of
:class:`SpotifyError`. Library code raises these and never logs-and-swallows
them; the CLI entry point in :func:`spotify_web_api.app.main` catches
``SpotifyError`` and exits with the error's ``exit_code``.

Subclass hierarchy::

    SpotifyError (exit 1)
    +-- ConfigurationError           (exit 1)
    +-- FlowStateError               (exit 2)
    |   +-- UnsupportedOperationError (exit 2)
    +-- AuthenticationError          (exit 3)
    +-- AuthenticationRequiredError  (exit 3)
    +-- TokenRefreshError            (exit 3)
    +-- ApiError                     (exit 4)
    +-- DecodeError                  (exit 5)
    +-- TransportError               (exit 6)
"""

from __future__ import annotations

from typing import Any, Optional

from spotify_web_api.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class SpotifyError(Exception):
    """Base exception for all spotify_web_api errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(SpotifyError):
    """Raised for malformed credentials, redirect URIs, or settings.

    Surfaced as soon as the bad value is seen, usually from a constructor.
    """

    exit_code = EXIT_GENERIC_FAILURE


class FlowStateError(SpotifyError):
    """Raised when an authorization step is invoked out of sequence.

    For example, exchanging a code before the redirect was verified, or
    reusing a verifier that an earlier exchange already consumed.
    """

    exit_code = EXIT_INVALID_USAGE


class UnsupportedOperationError(FlowStateError):
    """Raised when a flow is asked for something it cannot do (refreshing client credentials)."""


class AuthenticationError(SpotifyError):
    """Raised when the accounts service rejects credentials, a code, or a verifier.

    Also raised when the redirect carries a mismatched ``state``, no
    ``code``, or an ``error`` parameter.

    Args:
        message: Human-readable error description.
        status: HTTP status of the token endpoint response, if any.
        code: OAuth2 error code (e.g. ``"invalid_grant"``), if any.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code


class AuthenticationRequiredError(SpotifyError):
    """Raised when a call needs a token but none has ever been obtained."""

    exit_code = EXIT_AUTH_FAILURE


class TokenRefreshError(AuthenticationError):
    """Raised when a refresh is rejected or impossible; the caller must re-authenticate."""


class TransportError(SpotifyError):
    """Raised on network-level failures (timeout, DNS, TLS, connection refused).

    Never retried by the library; the caller may retry.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ApiError(SpotifyError):
    """Raised when the Web API answers with HTTP 4xx / 5xx.

    Args:
        status: HTTP status code.
        message: Message from the vendor error envelope, or a generic one
            built from the status line when the body carried none.
        code: Machine-readable reason from the envelope, if any.
        retry_after: Seconds from the ``Retry-After`` header (HTTP 429).
        body: The decoded error body, or the raw text when it was not JSON.
    """

    exit_code = EXIT_API_ERROR

    def __init__(
        self,
        status: int,
        message: str,
        code: Optional[str] = None,
        retry_after: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")
        self.status = status
        self.message = message
        self.code = code
        self.retry_after = retry_after
        self.body = body


class DecodeError(SpotifyError):
    """Raised when a successful response does not match the expected type.

    Args:
        typename: Name of the type that failed to decode.
        detail: Underlying parser / validation message.
    """

    exit_code = EXIT_DECODE_ERROR

    def __init__(self, typename: str, detail: str):
        super().__init__(f"could not parse {typename} data: {detail}")
        self.typename = typename
        self.detail = detail
