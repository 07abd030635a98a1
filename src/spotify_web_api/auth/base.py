"""Abstract base class for OAuth2 authorization flows.

This module defines the foundational types of the auth subsystem:

- :class:`TokenRequest` -- the form fields and headers of one POST to the
  token endpoint. Flows build these; they never perform I/O themselves.
- :class:`AuthFlow` -- the abstract base class every grant type extends.
- :func:`request_token` / :func:`arequest_token` -- send a
  :class:`TokenRequest` with an ``httpx`` client and turn the response
  into a :class:`~spotify_web_api.models.Token` or a typed error.

To implement a new grant type, subclass :class:`AuthFlow`, set the
:attr:`~AuthFlow.auth_type` property, and implement
:meth:`~AuthFlow.token_request`. Override :meth:`~AuthFlow.refresh_request`
and set ``supports_refresh`` when the grant issues refresh tokens.

See Also:
    :class:`spotify_web_api.client.SpotifyClient` for how flows are driven.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from spotify_web_api.auth.scopes import ScopeLike, normalize_scopes
from spotify_web_api.auth.token import Clock, utcnow
from spotify_web_api.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DecodeError,
    TokenRefreshError,
    TransportError,
    UnsupportedOperationError,
)
from spotify_web_api.models import Token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenRequest:
    """Form body and headers of a single token endpoint request.

    Args:
        data: ``application/x-www-form-urlencoded`` fields, in order.
        headers: Extra headers (HTTP Basic credentials for confidential
            clients).
    """

    data: dict[str, str]
    headers: dict[str, str] = field(default_factory=dict, repr=False)

    @property
    def grant_type(self) -> str:
        return self.data.get("grant_type", "")

    @property
    def is_refresh(self) -> bool:
        return self.grant_type == "refresh_token"


def basic_auth_header(client_id: str, client_secret: str) -> dict[str, str]:
    """Return the HTTP Basic ``Authorization`` header for a confidential client."""
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}


def require_value(value: Optional[str], name: str) -> str:
    """Return *value* stripped, or raise :class:`ConfigurationError` if blank."""
    if value is None or not value.strip():
        raise ConfigurationError(f"{name} must not be empty")
    return value.strip()


def validate_redirect_uri(redirect_uri: Optional[str]) -> str:
    """Check that *redirect_uri* is an absolute ``http(s)`` URL."""
    value = require_value(redirect_uri, "redirect_uri")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(
            f"redirect_uri must be an absolute http(s) URL, got '{value}'"
        )
    return value


class AuthFlow(ABC):
    """Abstract base class for OAuth2 grant types.

    Every concrete flow must provide:

    1. An :attr:`auth_type` property returning a unique identifier
       (e.g. ``"client_credentials"``).
    2. A :meth:`token_request` implementation building the initial
       exchange.

    Capability flags checked by the executors before dispatch:

    * ``supports_refresh`` -- the flow can renew a token through
      :meth:`refresh_request`.
    * ``reauthenticates`` -- the flow can obtain a brand new token
      without user interaction, so an expired token is silently replaced
      by a fresh exchange.

    Args:
        client_id: The application's client identifier.
        scopes: Requested scopes (:class:`~spotify_web_api.auth.scopes.Scope`
            members or plain strings).

    Raises:
        ConfigurationError: If *client_id* is blank.
    """

    supports_refresh: bool = False
    reauthenticates: bool = False

    def __init__(
        self,
        client_id: str,
        scopes: Optional[Iterable[ScopeLike]] = None,
    ) -> None:
        self._client_id = require_value(client_id, "client_id")
        self._scopes = normalize_scopes(scopes)

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the unique identifier of this grant type."""
        ...

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._scopes

    @abstractmethod
    def token_request(self) -> TokenRequest:
        """Build the request for the initial token exchange.

        Raises:
            FlowStateError: If the flow is not ready to exchange.
        """
        ...

    def refresh_request(self, token: Token) -> TokenRequest:
        """Build the request renewing *token*.

        The default implementation refuses without touching the network.

        Raises:
            UnsupportedOperationError: If the flow cannot refresh.
        """
        raise UnsupportedOperationError(f"{self.auth_type} flow does not support token refresh")

    def renewal_request(self, token: Token) -> TokenRequest:
        """Build whichever request replaces an expired *token*.

        Raises:
            TokenRefreshError: If the flow can neither refresh nor
                re-authenticate silently.
        """
        if self.supports_refresh:
            return self.refresh_request(token)
        if self.reauthenticates:
            return self.token_request()
        raise TokenRefreshError(
            f"Access token expired and the {self.auth_type} flow cannot renew it"
        )

    def accept(self, token: Token, previous: Optional[Token] = None) -> Token:
        """Normalise a freshly issued token before it is stored.

        A refresh response that omits ``refresh_token`` or ``scope`` keeps
        the values of *previous*.
        """
        if previous is None:
            return token
        update: dict[str, Any] = {}
        if token.refresh_token is None and previous.refresh_token is not None:
            update["refresh_token"] = previous.refresh_token
        if token.scope is None and previous.scope is not None:
            update["scope"] = previous.scope
        return token.model_copy(update=update) if update else token

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client_id={self._client_id!r})"


# --------------------------------------------------------------------------- #
# Token endpoint I/O
# --------------------------------------------------------------------------- #


def request_token(
    http: httpx.Client,
    token_url: str,
    token_request: TokenRequest,
    clock: Clock = utcnow,
) -> Token:
    """POST *token_request* to *token_url* and return the issued token.

    ``expires_at`` is stamped from *clock* at the moment the response
    arrived.

    Raises:
        AuthenticationError: The server rejected the request
            (:class:`TokenRefreshError` for refresh grants).
        TransportError: The request never got a response.
        DecodeError: The response is not a token payload.
    """
    logger.debug("Requesting token (grant_type=%s)", token_request.grant_type)
    try:
        response = http.post(
            token_url,
            data=token_request.data,
            headers={"Accept": "application/json", **token_request.headers},
        )
    except httpx.RequestError as exc:
        raise TransportError(f"Token request failed: {exc}") from exc
    return parse_token_response(response, token_request, clock())


async def arequest_token(
    http: httpx.AsyncClient,
    token_url: str,
    token_request: TokenRequest,
    clock: Clock = utcnow,
) -> Token:
    """Async counterpart of :func:`request_token`."""
    logger.debug("Requesting token (grant_type=%s)", token_request.grant_type)
    try:
        response = await http.post(
            token_url,
            data=token_request.data,
            headers={"Accept": "application/json", **token_request.headers},
        )
    except httpx.RequestError as exc:
        raise TransportError(f"Token request failed: {exc}") from exc
    return parse_token_response(response, token_request, clock())


def parse_token_response(
    response: httpx.Response,
    token_request: TokenRequest,
    issued_at: datetime,
) -> Token:
    """Turn a token endpoint response into a :class:`Token` or a typed error."""
    if not response.is_success:
        error_cls = TokenRefreshError if token_request.is_refresh else AuthenticationError
        code, description = _oauth_error(response)
        action = "Token refresh" if token_request.is_refresh else "Token request"
        message = f"{action} rejected with status {response.status_code}"
        if description:
            message += f": {description}"
        raise error_cls(message, status=response.status_code, code=code)

    try:
        data = response.json()
    except ValueError as exc:
        raise DecodeError("Token", str(exc)) from exc
    if not isinstance(data, dict):
        raise DecodeError("Token", f"expected a JSON object, got {type(data).__name__}")
    try:
        token = Token.from_response(data, issued_at)
    except ValidationError as exc:
        raise DecodeError("Token", str(exc)) from exc

    logger.debug(
        "Token issued (grant_type=%s, expires_in=%s)",
        token_request.grant_type,
        token.expires_in,
    )
    return token


def _oauth_error(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
    """Extract ``(error, error_description)`` from an OAuth2 error body."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return None, text[:200] or None
    if not isinstance(body, dict):
        return None, None
    error = body.get("error")
    if isinstance(error, dict):
        # Web API style envelope, seen when the token URL is misconfigured.
        return error.get("reason"), error.get("message")
    code = error if isinstance(error, str) else None
    description = body.get("error_description") or code
    return code, description
