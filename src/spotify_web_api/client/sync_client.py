"""Blocking Web API client with lazy token refresh and typed decoding.

This module provides :class:`SpotifyClient`, the blocking query executor.
It wraps :class:`httpx.Client` and layers on:

- **Token lifecycle** -- the current token lives in a
  :class:`~spotify_web_api.auth.token.TokenStore`. Before every call an
  expired token is refreshed through the auth flow (or re-issued, for
  client credentials), with at most one refresh in flight.
- **Request building** -- endpoint descriptors become requests through
  :func:`~spotify_web_api.api.request.build_request`.
- **Error mapping** -- network failures become
  :class:`~spotify_web_api.exceptions.TransportError`, 3xx/4xx/5xx become
  :class:`~spotify_web_api.exceptions.ApiError`, undecodable bodies
  :class:`~spotify_web_api.exceptions.DecodeError`.
- **Pagination** -- :meth:`SpotifyClient.paged` returns a lazy
  :class:`~spotify_web_api.api.paged.Paged` sequence.

Requests are never retried; a failed call surfaces its error once.

See Also:
    :class:`~spotify_web_api.client.async_client.AsyncSpotifyClient` for
    the equivalent non-blocking implementation.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from spotify_web_api.api.endpoint import Endpoint
from spotify_web_api.api.paged import PageRequest, Paged, Pagination, page_type
from spotify_web_api.api.request import build_request
from spotify_web_api.auth.authorization_code import FlowState, UserAuthFlow
from spotify_web_api.auth.base import AuthFlow, request_token
from spotify_web_api.auth.token import Clock, TokenCallback, TokenStore, utcnow
from spotify_web_api.client.response import decode_response, raise_for_error
from spotify_web_api.config import ClientSettings
from spotify_web_api.exceptions import TransportError, UnsupportedOperationError
from spotify_web_api.models import Page, Token

logger = logging.getLogger(__name__)


class SpotifyClient:
    """Blocking client for the Spotify Web API.

    Safe to share between threads: token reads and replacement are
    guarded, and concurrent callers that find the token expired share a
    single refresh.

    Args:
        auth: The authorization flow that issues and renews tokens.
        token: A previously persisted token to start from.
        settings: URLs, timeout and expiry margin; defaults apply when
            omitted.
        http_client: An existing :class:`httpx.Client` to send requests
            with. It is not closed by :meth:`close`.
        clock: Source of "now" for expiry checks and token stamping.
        on_token: Called with every newly issued or refreshed token.

    Example::

        flow = ClientCredentials(client_id, client_secret)
        with SpotifyClient(flow) as client:
            client.request_token()
            album = client.execute(GetAlbum(album_id="4aawyAB9vmqN3uQ7FjRGTy"))
    """

    def __init__(
        self,
        auth: AuthFlow,
        token: Optional[Token] = None,
        settings: Optional[ClientSettings] = None,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
        on_token: Optional[TokenCallback] = None,
    ) -> None:
        self._auth = auth
        self._settings = settings or ClientSettings()
        self._tokens = TokenStore(
            clock=clock or utcnow,
            expiry_margin=self._settings.expiry_margin,
            on_token=on_token,
        )
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=self._settings.timeout,
            verify=self._settings.verify_ssl,
        )
        if token is not None:
            self.set_token(token)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SpotifyClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Token lifecycle
    # ------------------------------------------------------------------ #

    @property
    def auth(self) -> AuthFlow:
        return self._auth

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def token(self) -> Optional[Token]:
        """The current token, or ``None`` before the first exchange."""
        return self._tokens.get()

    def set_token(self, token: Token) -> None:
        """Start from a previously obtained *token* (e.g. loaded from disk)."""
        self._tokens.replace(self._auth.accept(token))

    def authorization_url(self, state: Optional[str] = None, show_dialog: bool = False) -> str:
        """Return the URL that asks the user to authorize this application.

        Raises:
            UnsupportedOperationError: For flows without a user step.
        """
        return self._user_flow().authorization_url(
            self._settings.authorize_url, state=state, show_dialog=show_dialog
        )

    def verify_authorization_response(self, url: str) -> str:
        """Check the redirect *url* and return its authorization code."""
        return self._user_flow().verify_authorization_response(url)

    def request_token(self, code: Optional[str] = None, state: Optional[str] = None) -> Token:
        """Exchange credentials (or an authorization code) for a token.

        For client credentials call without arguments. For the code flows,
        either pass the *code* and *state* from the redirect, or verify the
        redirect first with :meth:`verify_authorization_response`.

        Raises:
            AuthenticationError: On a state mismatch or a rejected exchange.
            FlowStateError: If the flow is not ready to exchange.
            TransportError: If the token endpoint could not be reached.
        """
        if code is not None or state is not None:
            self._user_flow().accept_authorization_code(code, state)
        token_request = self._auth.token_request()
        token = request_token(
            self._client, self._settings.token_url, token_request, self._tokens.clock
        )
        token = self._auth.accept(token)
        self._tokens.replace(token)
        return token

    def request_token_from_redirect_url(self, url: str) -> Token:
        """Verify the redirect *url* and exchange its code in one step."""
        self.verify_authorization_response(url)
        return self.request_token()

    def refresh_token(self) -> Token:
        """Refresh the current token now, whether or not it has expired.

        Raises:
            UnsupportedOperationError: If the flow has no refresh grant
                (client credentials). No request is sent.
            AuthenticationRequiredError: If there is no token yet.
            TokenRefreshError: If the server rejects the refresh.
        """
        if not self._auth.supports_refresh:
            raise UnsupportedOperationError(
                f"{self._auth.auth_type} flow does not support token refresh"
            )
        return self._tokens.refresh(self._renew)

    def _renew(self, token: Token) -> Token:
        token_request = self._auth.renewal_request(token)
        logger.debug("Renewing expired token (grant_type=%s)", token_request.grant_type)
        issued = request_token(
            self._client, self._settings.token_url, token_request, self._tokens.clock
        )
        return self._auth.accept(issued, previous=token)

    @property
    def flow_state(self) -> FlowState:
        """Lifecycle position of the user flow, with token expiry observed.

        Reports ``TOKEN_EXPIRED`` while the flow has issued a token that
        has since expired and was not yet refreshed.

        Raises:
            UnsupportedOperationError: For flows without a user step.
        """
        state = self._user_flow().state
        if state is FlowState.TOKEN_ISSUED:
            token = self._tokens.get()
            if token is not None and self._tokens.is_expired(token):
                return FlowState.TOKEN_EXPIRED
        return state

    def _user_flow(self) -> UserAuthFlow:
        if not isinstance(self._auth, UserAuthFlow):
            raise UnsupportedOperationError(
                f"{self._auth.auth_type} flow has no user authorization step"
            )
        return self._auth

    # ------------------------------------------------------------------ #
    # Query execution
    # ------------------------------------------------------------------ #

    def execute(self, endpoint: Endpoint, response_type: Any = None) -> Any:
        """Call *endpoint* and decode the response.

        Args:
            endpoint: The call to make.
            response_type: Type to decode into; defaults to the endpoint's
                ``response_type``. Without either, parsed JSON is returned.

        Raises:
            AuthenticationRequiredError: If no token was obtained yet.
            TokenRefreshError: If the expired token could not be renewed.
            TransportError: On network failure.
            ApiError: On an error status.
            DecodeError: If the body does not match the type.
        """
        response = self._send(endpoint)
        target = response_type if response_type is not None else endpoint.response_type
        return decode_response(response, target)

    def execute_raw(self, endpoint: Endpoint) -> bytes:
        """Call *endpoint* and return the undecoded response body."""
        return self._send(endpoint).content

    def execute_ignore(self, endpoint: Endpoint) -> None:
        """Call *endpoint* and discard the response body."""
        self._send(endpoint)

    def paged(
        self,
        endpoint: Endpoint,
        item_type: Any = None,
        pagination: Optional[Pagination] = None,
    ) -> Paged[Any]:
        """Return a lazy sequence over the items of a pageable *endpoint*.

        No request is sent until the sequence is consumed.

        Raises:
            UnsupportedOperationError: If the endpoint is not pageable.
        """
        if not endpoint.pageable:
            raise UnsupportedOperationError(f"{type(endpoint).__name__} is not pageable")
        target = page_type(endpoint.response_type, item_type)

        def fetch(page_request: PageRequest) -> Page[Any]:
            response = self._send(
                endpoint, url=page_request.url, extra_params=page_request.params
            )
            return decode_response(response, target)

        return Paged(pagination, fetch=fetch)

    def _send(
        self,
        endpoint: Endpoint,
        url: Optional[str] = None,
        extra_params: Any = None,
    ) -> httpx.Response:
        """Send one request for *endpoint* with a fresh token and map errors."""
        token = self._tokens.ensure_fresh(self._renew)
        request = build_request(
            endpoint, token, self._settings.api_url, url=url, extra_params=extra_params
        )
        logger.debug("REST api call %s %s", request.method, request.url)
        try:
            response = self._client.send(request)
        except httpx.RequestError as exc:
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc
        logger.debug("REST api response %s %s", response.status_code, request.url)
        raise_for_error(response)
        return response
