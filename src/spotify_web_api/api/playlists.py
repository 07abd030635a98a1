"""Playlist endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from spotify_web_api.api.endpoint import (
    Endpoint,
    HTTPMethod,
    JsonParams,
    QueryParams,
    RequestBody,
)
from spotify_web_api.models import Page, Playlist, SimplifiedPlaylist, SnapshotResponse


@dataclass
class GetPlaylist(Endpoint):
    path = "playlists/{playlist_id}"
    response_type = Playlist

    playlist_id: str
    market: Optional[str] = None
    fields: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push_opt("market", self.market).push_opt("fields", self.fields)


@dataclass
class GetCurrentUserPlaylists(Endpoint):
    path = "me/playlists"
    pageable = True
    response_type = Page[SimplifiedPlaylist]


@dataclass
class GetUserPlaylists(Endpoint):
    path = "users/{user_id}/playlists"
    pageable = True
    response_type = Page[SimplifiedPlaylist]

    user_id: str


@dataclass
class CreatePlaylist(Endpoint):
    """Create a playlist owned by *user_id*; unset options are left out of the body."""

    method = HTTPMethod.POST
    path = "users/{user_id}/playlists"
    response_type = Playlist

    user_id: str
    name: str
    public: Optional[bool] = None
    collaborative: Optional[bool] = None
    description: Optional[str] = None

    def body(self) -> Optional[RequestBody]:
        return JsonParams.to_body(
            {
                "name": self.name,
                "public": self.public,
                "collaborative": self.collaborative,
                "description": self.description,
            },
            clean=True,
        )


@dataclass
class AddItemsToPlaylist(Endpoint):
    """Add track or episode URIs, optionally at *position*."""

    method = HTTPMethod.POST
    path = "playlists/{playlist_id}/tracks"
    response_type = SnapshotResponse

    playlist_id: str
    uris: list[str] = field(default_factory=list)
    position: Optional[int] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push("uris", self.uris).push_opt("position", self.position)
