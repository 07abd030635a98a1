"""Tests for the ``spotify-web-api`` command-line front-end.

Every command runs through Typer's ``CliRunner`` against an isolated data
directory; the HTTP client built by the commands is replaced with one over
:class:`httpx.MockTransport`.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from spotify_web_api import __version__
from spotify_web_api.app import app, parse_params
from spotify_web_api.auth.token_cache import CachedToken, TokenCache
from spotify_web_api.commands.auth import wait_for_redirect
from spotify_web_api.exceptions import AuthenticationError, ConfigurationError
from spotify_web_api.exit_codes import EXIT_API_ERROR, EXIT_AUTH_FAILURE
from spotify_web_api.models import Token

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_api(recorder, monkeypatch):
    """Route every command's HTTP traffic to *recorder*."""
    monkeypatch.setattr(
        "spotify_web_api.commands.session.make_http_client",
        lambda settings: httpx.Client(transport=httpx.MockTransport(recorder)),
    )
    return recorder


def _cache_user_token(issued_at: datetime, refresh_token: str = "refresh-1") -> TokenCache:
    cache = TokenCache("default")
    token = Token.from_response(
        {
            "access_token": "cached-access",
            "token_type": "Bearer",
            "expires_in": 3600,
            "refresh_token": refresh_token,
            "scope": "user-read-private",
        },
        issued_at,
    )
    cache.save(
        CachedToken(
            auth_type="authorization_code_pkce",
            client_id="client-1",
            redirect_uri="http://127.0.0.1:8888/callback",
            token=token,
        )
    )
    return cache


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"spotify-web-api {__version__}" in result.output

    def test_parse_params_keeps_order(self) -> None:
        assert parse_params(["b=2", "a=1", "q=x=y"]) == [("b", "2"), ("a", "1"), ("q", "x=y")]

    @pytest.mark.parametrize("bad", ["novalue", "=x"])
    def test_parse_params_rejects(self, bad: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_params([bad])


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


class TestAuthCommands:
    def test_client_credentials_caches_token(
        self, cli_runner, isolated_config, mock_api, monkeypatch, token_payload
    ) -> None:
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "id-1")
        monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "secret-1")
        mock_api.add("POST", "/api/token", token_payload(access_token="app-token"))

        result = cli_runner.invoke(app, ["auth", "client-credentials"])

        assert result.exit_code == 0, result.output
        form = parse_qs(mock_api.requests[0].content.decode())
        assert form["grant_type"] == ["client_credentials"]
        entry = TokenCache("default").load()
        assert entry is not None
        assert entry.auth_type == "client_credentials"
        assert entry.client_id == "id-1"
        assert entry.token.access_token == "app-token"

    def test_client_credentials_missing_env(self, cli_runner, isolated_config, mock_api) -> None:
        result = cli_runner.invoke(app, ["auth", "client-credentials"])
        assert result.exit_code != 0
        assert "SPOTIFY_CLIENT_ID" in result.output
        assert mock_api.requests == []

    def test_client_credentials_rejected(
        self, cli_runner, isolated_config, mock_api, monkeypatch
    ) -> None:
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "id-1")
        monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "wrong")
        mock_api.add(
            "POST",
            "/api/token",
            httpx.Response(400, json={"error": "invalid_client", "error_description": "Invalid client"}),
        )
        result = cli_runner.invoke(app, ["auth", "client-credentials"])
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert TokenCache("default").load() is None

    def test_status_without_token(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["auth", "status"])
        assert result.exit_code == 0
        assert "No token cached" in result.output

    def test_status_json(self, cli_runner, isolated_config) -> None:
        _cache_user_token(_now())
        result = cli_runner.invoke(app, ["--json", "--quiet", "auth", "status"])
        assert result.exit_code == 0, result.output
        fields = {row["field"]: row["value"] for row in json.loads(result.stdout)}
        assert fields["flow"] == "authorization_code_pkce"
        assert fields["expired"] == "no"
        assert fields["refreshable"] == "yes"
        assert fields["scopes"] == "user-read-private"

    def test_logout(self, cli_runner, isolated_config) -> None:
        cache = _cache_user_token(_now())
        result = cli_runner.invoke(app, ["auth", "logout"])
        assert result.exit_code == 0
        assert "Removed" in result.output
        assert not cache.path.exists()

    def test_logout_without_token(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["auth", "logout"])
        assert result.exit_code == 0
        assert "No token cached" in result.output


# ---------------------------------------------------------------------------
# API commands
# ---------------------------------------------------------------------------


class TestApiCommands:
    def test_me_requires_login(self, cli_runner, isolated_config, mock_api) -> None:
        result = cli_runner.invoke(app, ["me"])
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "auth login" in result.output
        assert mock_api.requests == []

    def test_me(self, cli_runner, isolated_config, mock_api) -> None:
        _cache_user_token(_now())
        mock_api.add("GET", "/v1/me", {"id": "u1", "display_name": "Ann", "country": "SE"})

        result = cli_runner.invoke(app, ["--json", "--quiet", "me"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["id"] == "u1"
        assert data["display_name"] == "Ann"
        assert mock_api.requests[0].headers["Authorization"] == "Bearer cached-access"

    def test_expired_token_is_refreshed_and_written_back(
        self, cli_runner, isolated_config, mock_api, token_payload
    ) -> None:
        _cache_user_token(T0)
        mock_api.add("POST", "/api/token", token_payload(access_token="fresh-access"))
        mock_api.add("GET", "/v1/me", {"id": "u1"})

        result = cli_runner.invoke(app, ["--json", "--quiet", "me"])

        assert result.exit_code == 0, result.output
        assert len(mock_api.calls("POST", "/api/token")) == 1
        assert mock_api.calls("GET", "/v1/me")[0].headers["Authorization"] == "Bearer fresh-access"
        entry = TokenCache("default").load()
        assert entry.token.access_token == "fresh-access"
        assert entry.token.refresh_token == "refresh-1"

    def test_api_error_exit_code(self, cli_runner, isolated_config, mock_api) -> None:
        _cache_user_token(_now())
        mock_api.add(
            "GET",
            "/v1/albums/missing",
            httpx.Response(404, json={"error": {"status": 404, "message": "Non existing id"}}),
        )
        result = cli_runner.invoke(app, ["get", "albums/missing"])
        assert result.exit_code == EXIT_API_ERROR
        assert "Non existing id" in result.output

    def test_get_with_params(self, cli_runner, isolated_config, mock_api) -> None:
        _cache_user_token(_now())
        mock_api.add("GET", "/v1/browse/categories", {"categories": {"items": []}})

        result = cli_runner.invoke(
            app, ["--json", "--quiet", "get", "browse/categories", "-p", "locale=sv_SE", "-p", "limit=5"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"categories": {"items": []}}
        assert mock_api.requests[0].url.params.multi_items() == [("locale", "sv_SE"), ("limit", "5")]

    def test_get_all_pages(self, cli_runner, isolated_config, mock_api) -> None:
        _cache_user_token(_now())
        mock_api.add(
            "GET",
            "/v1/me/tracks",
            {"items": [{"n": 1}], "next": "https://api.spotify.com/v1/me/tracks?offset=1&limit=1"},
            {"items": [{"n": 2}], "next": None},
        )

        result = cli_runner.invoke(app, ["--json", "--quiet", "get", "me/tracks", "--all"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"n": 1}, {"n": 2}]
        assert len(mock_api.requests) == 2

    def test_get_limit_stops_early(self, cli_runner, isolated_config, mock_api) -> None:
        _cache_user_token(_now())
        mock_api.add(
            "GET",
            "/v1/me/tracks",
            {"items": [{"n": 1}, {"n": 2}], "next": "https://api.spotify.com/v1/me/tracks?offset=2"},
        )

        result = cli_runner.invoke(app, ["--json", "--quiet", "get", "me/tracks", "--limit", "1"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"n": 1}]
        assert len(mock_api.requests) == 1

    def test_playlists_table(self, cli_runner, isolated_config, mock_api) -> None:
        _cache_user_token(_now())
        mock_api.add(
            "GET",
            "/v1/me/playlists",
            {
                "items": [
                    {
                        "id": "p1",
                        "name": "Mix",
                        "owner": {"id": "u1", "display_name": "Ann"},
                        "tracks": {"total": 12},
                    }
                ],
                "next": None,
            },
        )

        result = cli_runner.invoke(app, ["--json", "--quiet", "playlists"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {"id": "p1", "name": "Mix", "owner": "Ann", "tracks": "12"}
        ]


# ---------------------------------------------------------------------------
# Redirect listener
# ---------------------------------------------------------------------------


class TestWaitForRedirect:
    def test_times_out(self) -> None:
        with pytest.raises(AuthenticationError, match="timeout"):
            wait_for_redirect(
                "http://127.0.0.1:0/callback",
                "https://accounts.test/authorize",
                open_browser=False,
                timeout=0.05,
            )

    def test_receives_redirect(self) -> None:
        import socket
        import threading

        with socket.socket() as probe:
            probe.bind(("127.0.0.1", 0))
            port = probe.getsockname()[1]
        redirect_uri = f"http://127.0.0.1:{port}/callback"

        def _hit() -> None:
            for _ in range(50):
                try:
                    httpx.get(f"{redirect_uri}?code=C&state=S", timeout=1)
                    return
                except httpx.TransportError:
                    threading.Event().wait(0.05)

        sender = threading.Thread(target=_hit, daemon=True)
        sender.start()
        url = wait_for_redirect(redirect_uri, "https://accounts.test/authorize", open_browser=False, timeout=5)
        sender.join(timeout=5)

        assert url == f"{redirect_uri}?code=C&state=S"
