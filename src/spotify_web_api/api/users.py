"""User profile and follow endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from spotify_web_api.api.endpoint import Endpoint, QueryParams
from spotify_web_api.models import CurrentUserProfile, FollowedArtists, FollowedArtistsType


@dataclass
class GetCurrentUserProfile(Endpoint):
    path = "me"
    response_type = CurrentUserProfile


@dataclass
class GetFollowedArtists(Endpoint):
    """Artists followed by the current user, cursor-paged through *after*."""

    path = "me/following"
    response_type = FollowedArtists

    type: FollowedArtistsType = FollowedArtistsType.ARTIST
    after: Optional[str] = None
    limit: Optional[int] = None

    def parameters(self) -> QueryParams:
        return (
            QueryParams()
            .push("type", self.type)
            .push_opt("after", self.after)
            .push_opt("limit", self.limit)
        )
