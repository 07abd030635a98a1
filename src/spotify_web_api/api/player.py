"""Playback endpoints.

``GET me/player`` answers ``204 No Content`` when nothing is playing,
which :class:`GetPlaybackState` decodes as ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from spotify_web_api.api.endpoint import Endpoint, HTTPMethod, QueryParams
from spotify_web_api.models import PlaybackState, RepeatState


@dataclass
class GetPlaybackState(Endpoint):
    path = "me/player"
    response_type = Optional[PlaybackState]

    market: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push_opt("market", self.market)


@dataclass
class PausePlayback(Endpoint):
    method = HTTPMethod.PUT
    path = "me/player/pause"

    device_id: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push_opt("device_id", self.device_id)


@dataclass
class SetRepeatMode(Endpoint):
    method = HTTPMethod.PUT
    path = "me/player/repeat"

    state: RepeatState = RepeatState.OFF
    device_id: Optional[str] = None

    def parameters(self) -> QueryParams:
        return QueryParams().push("state", self.state).push_opt("device_id", self.device_id)
