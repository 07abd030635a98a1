"""Helpers shared by the CLI commands: client construction and error exits.

Commands never build :class:`~spotify_web_api.client.SpotifyClient`
themselves. :func:`new_client` wires a token cache as the client's
``on_token`` callback, so refreshed tokens are written back;
:func:`open_client` additionally rebuilds the flow that issued the cached
token and starts from it.

:func:`handle_errors` turns a
:class:`~spotify_web_api.exceptions.SpotifyError` raised inside a command
into an error message and a :class:`typer.Exit` carrying the error's
exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import httpx
import typer

from spotify_web_api.auth.authorization_code import AuthorizationCode, AuthorizationCodePKCE
from spotify_web_api.auth.base import AuthFlow
from spotify_web_api.auth.client_credentials import ClientCredentials
from spotify_web_api.auth.token_cache import CachedToken, TokenCache
from spotify_web_api.client import SpotifyClient
from spotify_web_api.config import ClientSettings, load_settings, resolve_credential
from spotify_web_api.exceptions import (
    AuthenticationRequiredError,
    ConfigurationError,
    SpotifyError,
)
from spotify_web_api.models import Token
from spotify_web_api.output import error, suggest

DEFAULT_CLIENT_ID_SOURCE = "env:SPOTIFY_CLIENT_ID"
DEFAULT_CLIENT_SECRET_SOURCE = "env:SPOTIFY_CLIENT_SECRET"


def make_http_client(settings: ClientSettings) -> httpx.Client:
    """Create the HTTP client used by CLI commands (patched in tests)."""
    return httpx.Client(timeout=settings.timeout, verify=settings.verify_ssl)


@contextmanager
def new_client(
    flow: AuthFlow,
    cache: TokenCache,
    token: Optional[Token] = None,
) -> Iterator[SpotifyClient]:
    """Yield a client for *flow* that writes every new token to *cache*."""
    settings = load_settings()
    http_client = make_http_client(settings)
    try:
        yield SpotifyClient(
            flow,
            token=token,
            settings=settings,
            http_client=http_client,
            on_token=cache.saver(flow),
        )
    finally:
        http_client.close()


def flow_for(entry: CachedToken, client_secret_source: str) -> AuthFlow:
    """Rebuild the flow that issued *entry*.

    Raises:
        ConfigurationError: For an unknown flow, or when a confidential
            flow's secret cannot be resolved.
    """
    if entry.auth_type == "authorization_code_pkce":
        return AuthorizationCodePKCE(entry.client_id, entry.redirect_uri or "")
    if entry.auth_type == "authorization_code":
        secret = resolve_credential(client_secret_source)
        return AuthorizationCode(entry.client_id, secret, entry.redirect_uri or "")
    if entry.auth_type == "client_credentials":
        return ClientCredentials(entry.client_id, resolve_credential(client_secret_source))
    raise ConfigurationError(f"Unknown cached flow '{entry.auth_type}'")


@contextmanager
def open_client(
    cache_name: str = "default",
    client_secret_source: str = DEFAULT_CLIENT_SECRET_SOURCE,
) -> Iterator[SpotifyClient]:
    """Yield a client primed with the cached token of *cache_name*.

    Raises:
        AuthenticationRequiredError: If nothing is cached.
    """
    cache = TokenCache(cache_name)
    entry = cache.load()
    if entry is None:
        raise AuthenticationRequiredError(
            f"No cached token in '{cache_name}'; run 'spotify-web-api auth login' first"
        )
    flow = flow_for(entry, client_secret_source)
    with new_client(flow, cache, token=entry.token) as client:
        yield client


@contextmanager
def handle_errors() -> Iterator[None]:
    """Map a :class:`SpotifyError` to an error message and exit code."""
    try:
        yield
    except AuthenticationRequiredError as exc:
        error(str(exc))
        suggest("Log in: spotify-web-api auth login")
        raise typer.Exit(code=exc.exit_code) from None
    except SpotifyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
