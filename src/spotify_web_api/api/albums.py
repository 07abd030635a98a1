"""Album endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from spotify_web_api.api.endpoint import Endpoint, HTTPMethod, QueryParams
from spotify_web_api.models import Album, Albums, Page, SavedAlbum


@dataclass
class GetAlbum(Endpoint):
    path = "albums/{album_id}"
    response_type = Album

    album_id: str
    market: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push_opt("market", self.market)


@dataclass
class GetSeveralAlbums(Endpoint):
    """Up to 20 albums by id; unknown ids come back as ``None``."""

    path = "albums"
    response_type = Albums

    ids: list[str] = field(default_factory=list)
    market: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push("ids", self.ids).push_opt("market", self.market)


@dataclass
class GetUserSavedAlbums(Endpoint):
    path = "me/albums"
    pageable = True
    response_type = Page[SavedAlbum]

    market: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push_opt("market", self.market)


@dataclass
class SaveAlbumsForCurrentUser(Endpoint):
    method = HTTPMethod.PUT
    path = "me/albums"

    ids: list[str] = field(default_factory=list)

    def parameters(self) -> QueryParams:
        return QueryParams().push("ids", self.ids)


@dataclass
class CheckUserSavedAlbums(Endpoint):
    path = "me/albums/contains"
    response_type = list[bool]

    ids: list[str] = field(default_factory=list)

    def parameters(self) -> QueryParams:
        return QueryParams().push("ids", self.ids)
