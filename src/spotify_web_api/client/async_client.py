"""Asynchronous Web API client with lazy token refresh and typed decoding.

This module provides :class:`AsyncSpotifyClient`, the non-blocking twin of
:class:`~spotify_web_api.client.sync_client.SpotifyClient`. It wraps
:class:`httpx.AsyncClient` and has the same contract. Only the network
round-trips (API calls and token requests) suspend; request building,
decoding and error mapping are shared with the blocking client.

Concurrent tasks that find the token expired wait on one refresh instead
of each sending their own. If the task running the refresh is cancelled,
nothing is stored and the next caller refreshes again.

See Also:
    :class:`~spotify_web_api.client.sync_client.SpotifyClient` for the
    blocking implementation.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from spotify_web_api.api.endpoint import Endpoint
from spotify_web_api.api.paged import PageRequest, Paged, Pagination, page_type
from spotify_web_api.api.request import build_request
from spotify_web_api.auth.authorization_code import FlowState, UserAuthFlow
from spotify_web_api.auth.base import AuthFlow, arequest_token
from spotify_web_api.auth.token import Clock, TokenCallback, TokenStore, utcnow
from spotify_web_api.client.response import decode_response, raise_for_error
from spotify_web_api.config import ClientSettings
from spotify_web_api.exceptions import TransportError, UnsupportedOperationError
from spotify_web_api.models import Page, Token

logger = logging.getLogger(__name__)


class AsyncSpotifyClient:
    """Non-blocking client for the Spotify Web API.

    Args:
        auth: The authorization flow that issues and renews tokens.
        token: A previously persisted token to start from.
        settings: URLs, timeout and expiry margin.
        http_client: An existing :class:`httpx.AsyncClient`. It is not
            closed by :meth:`aclose`.
        clock: Source of "now" for expiry checks and token stamping.
        on_token: Called with every newly issued or refreshed token.

    Example::

        async with AsyncSpotifyClient(flow, token=saved) as client:
            me = await client.execute(GetCurrentUserProfile())
    """

    def __init__(
        self,
        auth: AuthFlow,
        token: Optional[Token] = None,
        settings: Optional[ClientSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
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
        self._client = http_client or httpx.AsyncClient(
            timeout=self._settings.timeout,
            verify=self._settings.verify_ssl,
        )
        if token is not None:
            self.set_token(token)

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncSpotifyClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

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
        return self._tokens.get()

    def set_token(self, token: Token) -> None:
        self._tokens.replace(self._auth.accept(token))

    def authorization_url(self, state: Optional[str] = None, show_dialog: bool = False) -> str:
        return self._user_flow().authorization_url(
            self._settings.authorize_url, state=state, show_dialog=show_dialog
        )

    def verify_authorization_response(self, url: str) -> str:
        return self._user_flow().verify_authorization_response(url)

    async def request_token(
        self, code: Optional[str] = None, state: Optional[str] = None
    ) -> Token:
        """Exchange credentials (or an authorization code) for a token.

        See :meth:`SpotifyClient.request_token
        <spotify_web_api.client.sync_client.SpotifyClient.request_token>`.
        """
        if code is not None or state is not None:
            self._user_flow().accept_authorization_code(code, state)
        token_request = self._auth.token_request()
        token = await arequest_token(
            self._client, self._settings.token_url, token_request, self._tokens.clock
        )
        token = self._auth.accept(token)
        self._tokens.replace(token)
        return token

    async def request_token_from_redirect_url(self, url: str) -> Token:
        self.verify_authorization_response(url)
        return await self.request_token()

    async def refresh_token(self) -> Token:
        """Refresh the current token now.

        Raises:
            UnsupportedOperationError: For client credentials; nothing is sent.
        """
        if not self._auth.supports_refresh:
            raise UnsupportedOperationError(
                f"{self._auth.auth_type} flow does not support token refresh"
            )
        return await self._tokens.arefresh(self._renew)

    async def _renew(self, token: Token) -> Token:
        token_request = self._auth.renewal_request(token)
        logger.debug("Renewing expired token (grant_type=%s)", token_request.grant_type)
        issued = await arequest_token(
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

    async def execute(self, endpoint: Endpoint, response_type: Any = None) -> Any:
        """Call *endpoint* and decode the response into its type."""
        response = await self._send(endpoint)
        target = response_type if response_type is not None else endpoint.response_type
        return decode_response(response, target)

    async def execute_raw(self, endpoint: Endpoint) -> bytes:
        response = await self._send(endpoint)
        return response.content

    async def execute_ignore(self, endpoint: Endpoint) -> None:
        await self._send(endpoint)

    def paged(
        self,
        endpoint: Endpoint,
        item_type: Any = None,
        pagination: Optional[Pagination] = None,
    ) -> Paged[Any]:
        """Return a lazy async sequence over a pageable *endpoint*.

        Consume it with ``async for``, :meth:`~Paged.apages` or
        :meth:`~Paged.aall`.
        """
        if not endpoint.pageable:
            raise UnsupportedOperationError(f"{type(endpoint).__name__} is not pageable")
        target = page_type(endpoint.response_type, item_type)

        async def afetch(page_request: PageRequest) -> Page[Any]:
            response = await self._send(
                endpoint, url=page_request.url, extra_params=page_request.params
            )
            return decode_response(response, target)

        return Paged(pagination, afetch=afetch)

    async def _send(
        self,
        endpoint: Endpoint,
        url: Optional[str] = None,
        extra_params: Any = None,
    ) -> httpx.Response:
        token = await self._tokens.aensure_fresh(self._renew)
        request = build_request(
            endpoint, token, self._settings.api_url, url=url, extra_params=extra_params
        )
        logger.debug("REST api call %s %s", request.method, request.url)
        try:
            response = await self._client.send(request)
        except httpx.RequestError as exc:
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc
        logger.debug("REST api response %s %s", response.status_code, request.url)
        raise_for_error(response)
        return response
