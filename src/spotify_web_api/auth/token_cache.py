"""Persistent token cache used by the command-line front-end.

Stores tokens in ``~/.local/share/spotify-web-api/tokens/<name>.json``
(XDG) or the platform-equivalent directory. Files are written atomically
via :func:`tempfile.NamedTemporaryFile` and ``os.replace`` with ``0o600``
permissions so that tokens are never world-readable, even momentarily.

A cache is usually wired to a client through its ``on_token`` callback,
so every issued or refreshed token is written back immediately::

    cache = TokenCache("default")
    client = SpotifyClient(flow, on_token=cache.saver(flow))

Only credentials are persisted here, never API responses.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from spotify_web_api.auth.base import AuthFlow
from spotify_web_api.config import get_data_dir
from spotify_web_api.models import Token


class CachedToken(BaseModel):
    """A stored token together with the flow that produced it.

    Attributes:
        auth_type: Identifier of the flow that issued the token.
        client_id: Client the token was issued to.
        redirect_uri: Redirect URI of user flows, needed to rebuild them.
        token: The token itself.
    """

    auth_type: str = Field(description="Flow that issued the token")
    client_id: str = Field(description="Client the token belongs to")
    redirect_uri: Optional[str] = Field(default=None, description="Redirect URI of user flows")
    token: Token


def _tokens_dir() -> Path:
    """Return the token directory, creating it if needed."""
    path = get_data_dir() / "tokens"
    path.mkdir(parents=True, exist_ok=True)
    return path


class TokenCache:
    """Read/write the cached token for one name.

    Args:
        name: Cache slot, used to derive the file name.
        directory: Override of the storage directory (tests).
    """

    def __init__(self, name: str = "default", directory: Optional[Path] = None) -> None:
        self._name = name
        self._path = (directory or _tokens_dir()) / f"{name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path of this cache slot."""
        return self._path

    def save(self, entry: CachedToken) -> None:
        """Persist *entry* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = json.dumps(entry.model_dump(mode="json"), indent=2) + "\n"

        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd = None
        tmp_path: Optional[str] = None
        try:
            fd = tempfile.NamedTemporaryFile(
                mode="w",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            )
            tmp_path = fd.name
            os.chmod(tmp_path, 0o600)
            fd.write(text)
            fd.flush()
            os.fsync(fd.fileno())
            fd.close()
            fd = None
            os.replace(tmp_path, self._path)
        except BaseException:
            if fd is not None:
                fd.close()
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise

    def load(self) -> Optional[CachedToken]:
        """Load the cached entry, or ``None`` if missing or unreadable."""
        if not self._path.is_file():
            return None
        try:
            return CachedToken.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (ValidationError, OSError):
            return None

    def saver(self, flow: AuthFlow) -> Callable[[Token], None]:
        """Return an ``on_token`` callback that stores tokens issued by *flow*."""
        redirect_uri = getattr(flow, "redirect_uri", None)

        def _save(token: Token) -> None:
            self.save(
                CachedToken(
                    auth_type=flow.auth_type,
                    client_id=flow.client_id,
                    redirect_uri=redirect_uri,
                    token=token,
                )
            )

        return _save

    def clear(self) -> bool:
        """Delete the cache file. Returns ``True`` if a file was removed."""
        if self._path.is_file():
            self._path.unlink()
            return True
        return False
