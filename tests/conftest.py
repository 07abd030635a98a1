"""Shared test fixtures for spotify_web_api.

Provides a controllable clock, a token factory, isolated XDG directories,
output state management and a CLI runner. All HTTP in the suite goes
through :class:`httpx.MockTransport`; nothing touches the network.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from spotify_web_api.models import Token
from spotify_web_api.output import OutputFormat, OutputManager, reset_output, set_output

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def set(self, seconds_after_t0: float) -> None:
        self.now = T0 + timedelta(seconds=seconds_after_t0)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and
    the test finishes, the cached references become stale ("I/O
    operation on closed file"). Resetting also detaches its log handler.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Time and tokens
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at :data:`T0`."""
    return FakeClock()


@pytest.fixture
def make_token() -> Callable[..., Token]:
    """Factory for tokens issued at :data:`T0` (unless told otherwise)."""

    def _make(
        access_token: str = "access-1",
        expires_in: int = 3600,
        refresh_token: Optional[str] = None,
        scope: Optional[str] = None,
        issued_at: datetime = T0,
    ) -> Token:
        data: dict[str, Any] = {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": expires_in,
        }
        if refresh_token is not None:
            data["refresh_token"] = refresh_token
        if scope is not None:
            data["scope"] = scope
        return Token.from_response(data, issued_at)

    return _make


@pytest.fixture
def token_payload() -> Callable[..., dict[str, Any]]:
    """Factory for token endpoint JSON bodies."""

    def _payload(access_token: str = "access-1", expires_in: int = 3600, **extra: Any) -> dict[str, Any]:
        return {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": expires_in,
            **extra,
        }

    return _payload


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class Recorder:
    """MockTransport handler that records requests and replays responses.

    Routes are matched on ``(method, path)``; each route holds a list of
    responses consumed in order (the last one repeats).
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def add(self, method: str, path: str, *responses: Any) -> None:
        self._routes.setdefault((method, path), []).extend(responses)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": {"status": 404, "message": "no route"}})
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            return response(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def http_client(recorder: Recorder) -> httpx.Client:
    client = httpx.Client(transport=httpx.MockTransport(recorder))
    yield client
    client.close()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate the data directory and environment to *tmp_path*.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME and XDG_DATA_HOME to
    subdirectories of tmp_path, forces the XDG layout, and clears every
    SPOTIFY_* environment variable.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("spotify_web_api.config._is_xdg_platform", lambda: True)

    for var in [
        "SPOTIFY_API_URL",
        "SPOTIFY_ACCOUNTS_URL",
        "SPOTIFY_TIMEOUT",
        "SPOTIFY_VERIFY_SSL",
        "SPOTIFY_EXPIRY_MARGIN",
        "SPOTIFY_CLIENT_ID",
        "SPOTIFY_CLIENT_SECRET",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
