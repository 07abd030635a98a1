"""OAuth2 Authorization Code flows, with and without PKCE.

This module provides the two user-facing grant types:

- :class:`AuthorizationCode` -- confidential clients holding a client
  secret. The exchange and refresh authenticate with HTTP Basic.
- :class:`AuthorizationCodePKCE` -- public clients (:rfc:`7636`). No
  secret; every authorization attempt carries a fresh code challenge and
  the exchange proves possession of the matching verifier.

Both share the same state machine (:class:`FlowState`)::

    NO_TOKEN -> AUTHORIZATION_REQUESTED -> AUTHORIZATION_GRANTED -> TOKEN_ISSUED
    TOKEN_ISSUED <-> TOKEN_EXPIRED  (via refresh)

The flow itself never holds a token, so it stays in ``TOKEN_ISSUED``;
``TOKEN_EXPIRED`` is reported by the clients' ``flow_state``, which also
looks at the stored token's expiry.

:meth:`~UserAuthFlow.authorization_url` starts an attempt and remembers
its ``state`` (and verifier). The redirect is checked with
:meth:`~UserAuthFlow.verify_authorization_response` or
:meth:`~UserAuthFlow.accept_authorization_code`. The exchange then
consumes the attempt: a second exchange with the same verifier is refused.

The flows only build requests; the HTTP round-trip is done by
:func:`spotify_web_api.auth.base.request_token` inside the clients.
"""

from __future__ import annotations

import enum
import hmac
import logging
import secrets
import threading
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import parse_qs, quote, urlencode, urlparse

from spotify_web_api.auth.base import (
    AuthFlow,
    TokenRequest,
    basic_auth_header,
    require_value,
    validate_redirect_uri,
)
from spotify_web_api.auth.pkce import CHALLENGE_METHOD, PkcePair, generate_pkce_pair
from spotify_web_api.auth.scopes import ScopeLike
from spotify_web_api.config import ACCOUNTS_URL
from spotify_web_api.exceptions import AuthenticationError, FlowStateError, TokenRefreshError
from spotify_web_api.models import Token

logger = logging.getLogger(__name__)

DEFAULT_AUTHORIZE_URL = ACCOUNTS_URL + "authorize"


class FlowState(str, enum.Enum):
    """Lifecycle position of a user authorization flow."""

    NO_TOKEN = "no_token"
    AUTHORIZATION_REQUESTED = "authorization_requested"
    AUTHORIZATION_GRANTED = "authorization_granted"
    TOKEN_ISSUED = "token_issued"
    TOKEN_EXPIRED = "token_expired"


@dataclass
class AuthorizationRequest:
    """One pending authorization attempt; lives until the first exchange."""

    state: str = field(repr=False)
    pkce: Optional[PkcePair] = None
    code: Optional[str] = field(default=None, repr=False)


class UserAuthFlow(AuthFlow):
    """Shared behaviour of the authorization code flows.

    Args:
        client_id: The application's client identifier.
        redirect_uri: Absolute ``http(s)`` URL registered for the app.
        scopes: Scopes to request from the user.

    Raises:
        ConfigurationError: If *client_id* is blank or *redirect_uri* is
            not an absolute http(s) URL.
    """

    supports_refresh = True

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        scopes: Optional[Iterable[ScopeLike]] = None,
    ) -> None:
        super().__init__(client_id, scopes)
        self._redirect_uri = validate_redirect_uri(redirect_uri)
        self._pending: Optional[AuthorizationRequest] = None
        self._state = FlowState.NO_TOKEN
        self._lock = threading.Lock()

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    @property
    def state(self) -> FlowState:
        return self._state

    # ------------------------------------------------------------------ #
    # Authorization
    # ------------------------------------------------------------------ #

    def authorization_url(
        self,
        authorize_url: str = DEFAULT_AUTHORIZE_URL,
        state: Optional[str] = None,
        show_dialog: bool = False,
    ) -> str:
        """Start an authorization attempt and return the URL to send the user to.

        Calling this again discards any earlier attempt (its state and
        verifier) and starts over.

        Args:
            authorize_url: The accounts service authorization endpoint.
            state: Caller-chosen anti-forgery value; a random one is
                generated when omitted.
            show_dialog: Force the consent dialog even if already approved.

        Returns:
            The fully-formed authorization URL.
        """
        request = self._new_request(state or secrets.token_urlsafe(32))
        params: dict[str, str] = {
            "client_id": self._client_id,
            "response_type": "code",
            "redirect_uri": self._redirect_uri,
        }
        if self._scopes:
            params["scope"] = " ".join(self._scopes)
        params["state"] = request.state
        params.update(self._authorization_params(request))
        if show_dialog:
            params["show_dialog"] = "true"

        with self._lock:
            self._pending = request
            self._state = FlowState.AUTHORIZATION_REQUESTED
        logger.debug("Started authorization attempt for client %s", self._client_id)
        return f"{authorize_url}?{urlencode(params, quote_via=quote)}"

    def verify_authorization_response(self, url: str) -> str:
        """Validate the redirect *url* and record the authorization code.

        Args:
            url: The full redirect URL (or just its query string) the
                accounts service sent the user back to.

        Returns:
            The authorization code.

        Raises:
            FlowStateError: If no authorization attempt is pending.
            AuthenticationError: If the redirect carries an ``error``, no
                ``code``, or a ``state`` that does not match.
        """
        query = urlparse(url).query if "?" in url or "://" in url else url.lstrip("?")
        params = parse_qs(query)
        error = params.get("error", [None])[0]
        if error:
            self._require_state(FlowState.AUTHORIZATION_REQUESTED)
            raise AuthenticationError(f"Authorization denied: {error}", code=error)
        code = params.get("code", [None])[0]
        state = params.get("state", [None])[0]
        self.accept_authorization_code(code, state)
        return code  # type: ignore[return-value]

    def accept_authorization_code(self, code: Optional[str], state: Optional[str]) -> None:
        """Record *code* after checking *state* against the pending attempt.

        On any failure the pending attempt is left as it was.

        Raises:
            FlowStateError: If no authorization attempt is pending.
            AuthenticationError: If *state* does not match or *code* is empty.
        """
        with self._lock:
            self._require_state(FlowState.AUTHORIZATION_REQUESTED)
            pending = self._pending
            assert pending is not None
            if state is None or not hmac.compare_digest(
                state.encode("utf-8"), pending.state.encode("utf-8")
            ):
                raise AuthenticationError("Invalid state parameter in authorization response")
            if not code:
                raise AuthenticationError("Authorization code not found in authorization response")
            pending.code = code
            self._state = FlowState.AUTHORIZATION_GRANTED

    # ------------------------------------------------------------------ #
    # Token requests
    # ------------------------------------------------------------------ #

    def token_request(self) -> TokenRequest:
        """Consume the granted attempt and build the code exchange.

        Raises:
            FlowStateError: If no verified authorization code is waiting,
                including when an earlier exchange already consumed it.
        """
        with self._lock:
            self._require_state(FlowState.AUTHORIZATION_GRANTED)
            pending = self._pending
            assert pending is not None and pending.code is not None
            self._pending = None
            self._state = FlowState.NO_TOKEN
        return self._exchange_request(pending)

    def refresh_request(self, token: Token) -> TokenRequest:
        if not token.refresh_token:
            raise TokenRefreshError(
                "Access token expired and no refresh token is available; authorize again"
            )
        return self._refresh_request(token.refresh_token)

    def accept(self, token: Token, previous: Optional[Token] = None) -> Token:
        token = super().accept(token, previous)
        with self._lock:
            # A refresh must not discard an authorization attempt in progress.
            if self._state in (FlowState.NO_TOKEN, FlowState.TOKEN_ISSUED):
                self._state = FlowState.TOKEN_ISSUED
        return token

    # ------------------------------------------------------------------ #
    # Variant hooks
    # ------------------------------------------------------------------ #

    def _new_request(self, state: str) -> AuthorizationRequest:
        return AuthorizationRequest(state=state)

    def _authorization_params(self, request: AuthorizationRequest) -> dict[str, str]:
        return {}

    @abstractmethod
    def _exchange_request(self, request: AuthorizationRequest) -> TokenRequest:
        """Build the code exchange for a granted *request*."""

    @abstractmethod
    def _refresh_request(self, refresh_token: str) -> TokenRequest:
        """Build the refresh grant for *refresh_token*."""

    def _require_state(self, expected: FlowState) -> None:
        if self._state is not expected:
            raise FlowStateError(
                f"Expected flow state '{expected.value}', but the flow is in "
                f"'{self._state.value}'"
            )


class AuthorizationCode(UserAuthFlow):
    """Authorization Code grant for confidential clients.

    Args:
        client_id: The application's client identifier.
        client_secret: The application's client secret.
        redirect_uri: Absolute ``http(s)`` URL registered for the app.
        scopes: Scopes to request from the user.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Optional[Iterable[ScopeLike]] = None,
    ) -> None:
        super().__init__(client_id, redirect_uri, scopes)
        self._client_secret = require_value(client_secret, "client_secret")

    @property
    def auth_type(self) -> str:
        return "authorization_code"

    def _exchange_request(self, request: AuthorizationRequest) -> TokenRequest:
        return TokenRequest(
            data={
                "grant_type": "authorization_code",
                "code": request.code or "",
                "redirect_uri": self._redirect_uri,
            },
            headers=basic_auth_header(self._client_id, self._client_secret),
        )

    def _refresh_request(self, refresh_token: str) -> TokenRequest:
        return TokenRequest(
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            headers=basic_auth_header(self._client_id, self._client_secret),
        )


class AuthorizationCodePKCE(UserAuthFlow):
    """Authorization Code grant with PKCE, for clients that cannot keep a secret.

    Args:
        client_id: The application's client identifier.
        redirect_uri: Absolute ``http(s)`` URL registered for the app.
        scopes: Scopes to request from the user.
    """

    @property
    def auth_type(self) -> str:
        return "authorization_code_pkce"

    def _new_request(self, state: str) -> AuthorizationRequest:
        return AuthorizationRequest(state=state, pkce=generate_pkce_pair())

    def _authorization_params(self, request: AuthorizationRequest) -> dict[str, str]:
        assert request.pkce is not None
        return {
            "code_challenge_method": CHALLENGE_METHOD,
            "code_challenge": request.pkce.challenge,
        }

    def _exchange_request(self, request: AuthorizationRequest) -> TokenRequest:
        assert request.pkce is not None
        return TokenRequest(
            data={
                "grant_type": "authorization_code",
                "code": request.code or "",
                "redirect_uri": self._redirect_uri,
                "client_id": self._client_id,
                "code_verifier": request.pkce.verifier,
            }
        )

    def _refresh_request(self, refresh_token: str) -> TokenRequest:
        return TokenRequest(
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self._client_id,
            }
        )
