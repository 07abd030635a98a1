"""spotify_web_api -- a typed client for the Spotify Web API.

The package covers the three OAuth2 flows the accounts service offers and
a request pipeline that executes declarative endpoint descriptors, either
blocking or with asyncio, refreshing tokens lazily and walking paged
listings on demand.

Typical usage::

    from spotify_web_api import ClientCredentials, SpotifyClient
    from spotify_web_api.api import GetAlbum

    flow = ClientCredentials(client_id, client_secret)
    with SpotifyClient(flow) as client:
        client.request_token()
        album = client.execute(GetAlbum(album_id="4aawyAB9vmqN3uQ7FjRGTy"))

Modules:
    auth: OAuth2 flows, PKCE, and the token store.
    api: Endpoint descriptors, request builder, and pagination.
    client: Blocking and async query executors.
    models: Pydantic models for tokens, pages, and resources.
    config: Client settings and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Command-line front-end.
"""

from spotify_web_api.auth import (
    AuthorizationCode,
    AuthorizationCodePKCE,
    ClientCredentials,
    Scope,
)
from spotify_web_api.client import AsyncSpotifyClient, SpotifyClient
from spotify_web_api.models import Token

__version__ = "0.1.0"

__all__ = [
    "AsyncSpotifyClient",
    "AuthorizationCode",
    "AuthorizationCodePKCE",
    "ClientCredentials",
    "Scope",
    "SpotifyClient",
    "Token",
    "__version__",
]
