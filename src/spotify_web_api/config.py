"""Client settings, environment overrides, and credential resolution.

This module holds the configuration surface of spotify_web_api:

* **Client settings** -- :class:`ClientSettings`, the URLs, timeouts and
  clock-skew margin used by :class:`~spotify_web_api.client.SpotifyClient`
  and :class:`~spotify_web_api.client.AsyncSpotifyClient`.
* **Environment overrides** -- :func:`load_settings` applies
  ``SPOTIFY_*`` environment variables on top of explicit values.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or literal values.
* **Directory layout** -- :func:`get_data_dir` returns the XDG data
  directory used by the CLI token cache.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from spotify_web_api.exceptions import ConfigurationError

_APP_NAME = "spotify-web-api"

API_URL = "https://api.spotify.com/v1/"
ACCOUNTS_URL = "https://accounts.spotify.com/"


class ClientSettings(BaseModel):
    """HTTP settings shared by the blocking and the async client.

    ``expiry_margin`` is the clock-skew tolerance applied when deciding
    whether the cached token has expired: a token is treated as expired
    once ``now >= expires_at - expiry_margin``. It defaults to zero.
    """

    api_url: str = Field(default=API_URL, description="Base URL of the Web API")
    authorize_url: str = Field(
        default=ACCOUNTS_URL + "authorize", description="User authorization endpoint"
    )
    token_url: str = Field(
        default=ACCOUNTS_URL + "api/token", description="Token endpoint"
    )
    timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    expiry_margin: float = Field(
        default=0.0, ge=0, description="Seconds subtracted from expires_at when checking expiry"
    )

    @field_validator("api_url")
    @classmethod
    def _with_trailing_slash(cls, value: str) -> str:
        # Paths are joined relative to the base, so it must end in a slash.
        return value if value.endswith("/") else value + "/"


_ENV_OVERRIDES: dict[str, str] = {
    "SPOTIFY_API_URL": "api_url",
    "SPOTIFY_TIMEOUT": "timeout",
    "SPOTIFY_VERIFY_SSL": "verify_ssl",
    "SPOTIFY_EXPIRY_MARGIN": "expiry_margin",
}


def load_settings(**overrides: Any) -> ClientSettings:
    """Build :class:`ClientSettings` from environment variables and *overrides*.

    Precedence (highest first): keyword *overrides*, ``SPOTIFY_*``
    environment variables, model defaults. ``SPOTIFY_ACCOUNTS_URL`` moves
    both the authorize and token endpoints at once.

    Raises:
        ConfigurationError: If a value fails validation.
    """
    values: dict[str, Any] = {}

    accounts_url = os.environ.get("SPOTIFY_ACCOUNTS_URL")
    if accounts_url:
        base = accounts_url if accounts_url.endswith("/") else accounts_url + "/"
        values["authorize_url"] = base + "authorize"
        values["token_url"] = base + "api/token"

    for env_var, field_name in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_var)
        if env_value:
            values[field_name] = env_value

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ClientSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid client settings: {exc}") from exc


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else -- returned verbatim as the literal credential

    Raises:
        ConfigurationError: If the source can't be resolved or is empty.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if not value:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path} (source: {source})")
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc
        if not value:
            raise ConfigurationError(f"Credential file is empty: {path}")
        return value

    if not source:
        raise ConfigurationError("Empty credential source")
    return source


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/spotify-web-api/`` (default
    ``~/.local/share/spotify-web-api/``). Elsewhere: ``~/.spotify-web-api/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path
