"""Track endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from spotify_web_api.api.endpoint import Endpoint, HTTPMethod, QueryParams
from spotify_web_api.models import Page, SavedTrack, Track


@dataclass
class GetTrack(Endpoint):
    path = "tracks/{track_id}"
    response_type = Track

    track_id: str
    market: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push_opt("market", self.market)


@dataclass
class GetUserSavedTracks(Endpoint):
    path = "me/tracks"
    pageable = True
    response_type = Page[SavedTrack]

    market: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push_opt("market", self.market)


@dataclass
class SaveTracksForCurrentUser(Endpoint):
    method = HTTPMethod.PUT
    path = "me/tracks"

    ids: list[str] = field(default_factory=list)

    def parameters(self) -> QueryParams:
        return QueryParams().push("ids", self.ids)


@dataclass
class RemoveUserSavedTracks(Endpoint):
    method = HTTPMethod.DELETE
    path = "me/tracks"

    ids: list[str] = field(default_factory=list)

    def parameters(self) -> QueryParams:
        return QueryParams().push("ids", self.ids)
