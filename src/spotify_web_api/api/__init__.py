"""Endpoint descriptors, request building and pagination.

- :mod:`~spotify_web_api.api.endpoint` -- the :class:`Endpoint` contract and
  its parameter containers.
- :mod:`~spotify_web_api.api.request` -- :func:`build_request`.
- :mod:`~spotify_web_api.api.paged` -- :class:`Pagination` and the
  :class:`Paged` driver.
- ``albums``, ``playlists``, ``player``, ``tracks``, ``users`` -- ready-made
  endpoint descriptors.
"""

from spotify_web_api.api.albums import (
    CheckUserSavedAlbums,
    GetAlbum,
    GetSeveralAlbums,
    GetUserSavedAlbums,
    SaveAlbumsForCurrentUser,
)
from spotify_web_api.api.endpoint import (
    BodyEncoding,
    Endpoint,
    FormParams,
    HTTPMethod,
    JsonParams,
    QueryParams,
    RawEndpoint,
    RequestBody,
)
from spotify_web_api.api.paged import MAX_LIMIT, PageCursor, Paged, Pagination
from spotify_web_api.api.player import GetPlaybackState, PausePlayback, SetRepeatMode
from spotify_web_api.api.playlists import (
    AddItemsToPlaylist,
    CreatePlaylist,
    GetCurrentUserPlaylists,
    GetPlaylist,
    GetUserPlaylists,
)
from spotify_web_api.api.request import build_request
from spotify_web_api.api.tracks import (
    GetTrack,
    GetUserSavedTracks,
    RemoveUserSavedTracks,
    SaveTracksForCurrentUser,
)
from spotify_web_api.api.users import GetCurrentUserProfile, GetFollowedArtists

__all__ = [
    "AddItemsToPlaylist",
    "BodyEncoding",
    "CheckUserSavedAlbums",
    "CreatePlaylist",
    "Endpoint",
    "FormParams",
    "GetAlbum",
    "GetCurrentUserPlaylists",
    "GetCurrentUserProfile",
    "GetFollowedArtists",
    "GetPlaybackState",
    "GetPlaylist",
    "GetSeveralAlbums",
    "GetTrack",
    "GetUserPlaylists",
    "GetUserSavedAlbums",
    "GetUserSavedTracks",
    "HTTPMethod",
    "JsonParams",
    "MAX_LIMIT",
    "PageCursor",
    "Paged",
    "Pagination",
    "PausePlayback",
    "QueryParams",
    "RawEndpoint",
    "RemoveUserSavedTracks",
    "RequestBody",
    "SaveAlbumsForCurrentUser",
    "SaveTracksForCurrentUser",
    "SetRepeatMode",
    "build_request",
]
