"""Auth commands -- obtain, inspect and forget cached tokens.

Provides the ``spotify-web-api auth`` sub-command group:

* ``login`` -- interactive Authorization Code + PKCE: opens the browser,
  waits for the redirect on a one-shot loopback listener, exchanges the
  code.
* ``client-credentials`` -- app-only token from a client id and secret.
* ``status`` -- show what is cached.
* ``logout`` -- delete the cached token.

Every obtained token is written to the token cache, from where the API
commands pick it up.

Typical workflow::

    export SPOTIFY_CLIENT_ID=...
    spotify-web-api auth login --scope user-read-private
    spotify-web-api me
"""

from __future__ import annotations

import threading
import time
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import urlparse

import typer

from spotify_web_api.auth.authorization_code import AuthorizationCodePKCE
from spotify_web_api.auth.client_credentials import ClientCredentials
from spotify_web_api.auth.token import utcnow
from spotify_web_api.auth.token_cache import TokenCache
from spotify_web_api.commands.session import (
    DEFAULT_CLIENT_ID_SOURCE,
    DEFAULT_CLIENT_SECRET_SOURCE,
    handle_errors,
    new_client,
)
from spotify_web_api.config import resolve_credential
from spotify_web_api.exceptions import AuthenticationError, ConfigurationError
from spotify_web_api.output import get_output, info, success, suggest

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
CALLBACK_TIMEOUT = 120

auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    client_id: str = typer.Option(
        DEFAULT_CLIENT_ID_SOURCE, "--client-id", help="Client id source: env:VAR, file:/path or value."
    ),
    redirect_uri: str = typer.Option(
        DEFAULT_REDIRECT_URI, "--redirect-uri", help="Registered loopback redirect URI."
    ),
    scopes: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Scope to request (repeatable)."
    ),
    cache_name: str = typer.Option("default", "--cache", help="Token cache name."),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the URL instead of opening a browser."
    ),
) -> None:
    """Log in as a user with Authorization Code + PKCE.

    The authorization URL is opened in the browser and a single request
    is awaited on the redirect URI's host and port.

    Example::

        spotify-web-api auth login -s user-read-private -s playlist-read-private
    """
    with handle_errors():
        flow = AuthorizationCodePKCE(resolve_credential(client_id), redirect_uri, scopes)
        cache = TokenCache(cache_name)
        with new_client(flow, cache) as client:
            auth_url = client.authorization_url()
            if no_browser:
                info("Open this URL to authorize:")
                get_output().print_data(auth_url)
            callback_url = wait_for_redirect(redirect_uri, auth_url, open_browser=not no_browser)
            token = client.request_token_from_redirect_url(callback_url)
        success(f"Logged in; token cached as '{cache_name}'.")
        if token.scope:
            info(f"Granted scopes: {token.scope}")
        suggest("Try it: spotify-web-api me")


@auth_app.command("client-credentials")
def auth_client_credentials(
    client_id: str = typer.Option(
        DEFAULT_CLIENT_ID_SOURCE, "--client-id", help="Client id source: env:VAR, file:/path or value."
    ),
    client_secret: str = typer.Option(
        DEFAULT_CLIENT_SECRET_SOURCE,
        "--client-secret",
        help="Client secret source: env:VAR, file:/path or value.",
    ),
    cache_name: str = typer.Option("default", "--cache", help="Token cache name."),
) -> None:
    """Obtain an app-only token with the Client Credentials grant."""
    with handle_errors():
        flow = ClientCredentials(resolve_credential(client_id), resolve_credential(client_secret))
        cache = TokenCache(cache_name)
        with new_client(flow, cache) as client:
            client.request_token()
        success(f"Client credentials token cached as '{cache_name}'.")


@auth_app.command("status")
def auth_status(
    cache_name: str = typer.Option("default", "--cache", help="Token cache name."),
) -> None:
    """Show the cached token's flow, client, expiry and scopes."""
    entry = TokenCache(cache_name).load()
    if entry is None:
        info(f"No token cached as '{cache_name}'.")
        suggest("Log in: spotify-web-api auth login")
        return

    token = entry.token
    expired = token.is_expired(utcnow())
    rows = [
        ["flow", entry.auth_type],
        ["client_id", entry.client_id],
        ["expires_at", token.expires_at.isoformat() if token.expires_at else "-"],
        ["expired", "yes" if expired else "no"],
        ["refreshable", "yes" if token.refresh_token else "no"],
        ["scopes", " ".join(sorted(token.scopes)) or "-"],
    ]
    get_output().print_table(["field", "value"], rows, title=f"Token '{cache_name}'")


@auth_app.command("logout")
def auth_logout(
    cache_name: str = typer.Option("default", "--cache", help="Token cache name."),
) -> None:
    """Delete the cached token."""
    if TokenCache(cache_name).clear():
        success(f"Removed cached token '{cache_name}'.")
    else:
        info(f"No token cached as '{cache_name}'.")


# ------------------------------------------------------------------ #
# Loopback redirect listener
# ------------------------------------------------------------------ #


def wait_for_redirect(
    redirect_uri: str,
    auth_url: str,
    open_browser: bool = True,
    timeout: float = CALLBACK_TIMEOUT,
) -> str:
    """Serve one request on *redirect_uri*'s host/port and return its full URL.

    The browser is opened in a daemon thread so the listener is already
    accepting when the redirect arrives. Checking ``state`` and ``code``
    is left to the flow.

    Raises:
        AuthenticationError: If nothing arrives within *timeout* seconds.
    """
    parsed = urlparse(redirect_uri)
    host = parsed.hostname or "127.0.0.1"
    port = parsed.port if parsed.port is not None else 80
    callback_path = parsed.path or "/"
    result: dict[str, Optional[str]] = {"url": None}

    class CallbackHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            if urlparse(self.path).path != callback_path:
                self.send_response(404)
                self.end_headers()
                return
            result["url"] = f"{parsed.scheme}://{parsed.netloc}{self.path}"
            if "error=" in self.path:
                body = "Authorization was not granted. You can close this window."
            else:
                body = "Authorization received. You can close this window and return to the terminal."
            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.end_headers()
            self.wfile.write(f"<html><body><h2>{body}</h2></body></html>".encode("utf-8"))

        def log_message(self, format: str, *args: Any) -> None:
            pass

    try:
        server = HTTPServer((host, port), CallbackHandler)
    except OSError as exc:
        raise ConfigurationError(f"Cannot listen on {host}:{port}: {exc}") from exc
    deadline = time.monotonic() + timeout
    try:
        if open_browser:
            threading.Thread(target=webbrowser.open, args=(auth_url,), daemon=True).start()
        # Stray requests (favicon) get a 404 and leave result unset.
        while result["url"] is None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            server.timeout = remaining
            server.handle_request()
    finally:
        server.server_close()

    if result["url"] is None:
        raise AuthenticationError("No authorization redirect received before the timeout")
    return result["url"]
