"""OAuth2 Client Credentials flow.

This module provides :class:`ClientCredentials`, the non-interactive
grant (:rfc:`6749` section 4.4) for backend applications. The client id
and secret are exchanged for an app-only access token. No user is
involved, so the token carries no scopes and no refresh token; once it
expires the executors simply run the exchange again.

See Also:
    :class:`spotify_web_api.auth.base.AuthFlow` for the base interface.
    :mod:`spotify_web_api.auth.authorization_code` for the user flows.
"""

from __future__ import annotations

from typing import Optional

from spotify_web_api.auth.base import (
    AuthFlow,
    TokenRequest,
    basic_auth_header,
    require_value,
)
from spotify_web_api.exceptions import UnsupportedOperationError
from spotify_web_api.models import Token


class ClientCredentials(AuthFlow):
    """Authenticate an application with its client id and secret.

    Args:
        client_id: The application's client identifier.
        client_secret: The application's client secret.

    Raises:
        ConfigurationError: If either credential is blank.
    """

    reauthenticates = True

    def __init__(self, client_id: str, client_secret: str) -> None:
        super().__init__(client_id)
        self._client_secret = require_value(client_secret, "client_secret")

    @property
    def auth_type(self) -> str:
        return "client_credentials"

    def token_request(self) -> TokenRequest:
        """Build ``grant_type=client_credentials`` with HTTP Basic credentials."""
        return TokenRequest(
            data={"grant_type": "client_credentials"},
            headers=basic_auth_header(self._client_id, self._client_secret),
        )

    def refresh_request(self, token: Token) -> TokenRequest:
        raise UnsupportedOperationError(
            "Client credentials tokens cannot be refreshed; request a new token instead"
        )

    def accept(self, token: Token, previous: Optional[Token] = None) -> Token:
        """Drop any refresh token or scope the server attached."""
        if token.refresh_token is None and token.scope is None:
            return token
        return token.model_copy(update={"refresh_token": None, "scope": None})
