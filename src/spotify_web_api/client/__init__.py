"""Query executors for the Spotify Web API.

Provides a blocking and an asynchronous client wrapping :mod:`httpx`,
with lazy single-flight token refresh, typed decoding and pagination.

Classes:
    :class:`SpotifyClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncSpotifyClient` -- non-blocking client backed by
    :class:`httpx.AsyncClient`.

Both accept the same parameters: an
:class:`~spotify_web_api.auth.base.AuthFlow`, an optional starting
token, optional :class:`~spotify_web_api.config.ClientSettings`, and an
optional ``on_token`` callback.

Example::

    from spotify_web_api.client import SpotifyClient

    with SpotifyClient(flow) as client:
        client.request_token()
        me = client.execute(GetCurrentUserProfile())
"""

from spotify_web_api.client.async_client import AsyncSpotifyClient
from spotify_web_api.client.sync_client import SpotifyClient

__all__ = ["SpotifyClient", "AsyncSpotifyClient"]
