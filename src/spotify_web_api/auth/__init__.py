"""OAuth2 flows, PKCE helpers and the token store."""

from spotify_web_api.auth.authorization_code import (
    AuthorizationCode,
    AuthorizationCodePKCE,
    FlowState,
    UserAuthFlow,
)
from spotify_web_api.auth.base import AuthFlow, TokenRequest, arequest_token, request_token
from spotify_web_api.auth.client_credentials import ClientCredentials
from spotify_web_api.auth.pkce import PkcePair, code_challenge, generate_pkce_pair
from spotify_web_api.auth.scopes import Scope
from spotify_web_api.auth.token import TokenStore

__all__ = [
    "AuthFlow",
    "AuthorizationCode",
    "AuthorizationCodePKCE",
    "ClientCredentials",
    "FlowState",
    "PkcePair",
    "Scope",
    "TokenRequest",
    "TokenStore",
    "UserAuthFlow",
    "arequest_token",
    "code_challenge",
    "generate_pkce_pair",
    "request_token",
]
