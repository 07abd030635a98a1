"""Canonical Pydantic models shared across all spotify_web_api modules.

The models fall into three groups:

**Credentials** -- :class:`Token`, the bearer credential set issued by the
accounts service. It is serialisable so callers can persist it between
runs and hand it back to a client with ``set_token``.

**Pagination envelopes** -- :class:`Page` and :class:`CursorPage`, generic
over the item type and consumed by :mod:`spotify_web_api.api.paged`.

**Resources** -- a deliberately tolerant subset of the Web API objects
(albums, tracks, playlists, users, playback). Unknown fields are ignored
and most fields are optional so that additions on the service side never
break decoding.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# --- Token ---


class Token(BaseModel):
    """Bearer credential set returned by the token endpoint.

    ``expires_at`` is stamped once, from the instant the token response
    was received (see :meth:`from_response`), and is never recomputed.

    Example::

        token = Token.from_response(
            {"access_token": "abc", "token_type": "Bearer", "expires_in": 3600},
            issued_at=datetime.now(timezone.utc),
        )
        assert not token.is_expired(datetime.now(timezone.utc))
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: int = Field(ge=0)
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_response(cls, data: dict[str, Any], issued_at: datetime) -> Token:
        """Validate a token endpoint payload and stamp its absolute expiry.

        Args:
            data: The decoded JSON body of the token response.
            issued_at: The instant the response was received.

        Returns:
            A :class:`Token` with ``expires_at = issued_at + expires_in``.

        Raises:
            pydantic.ValidationError: If the payload does not look like a
                token response.
        """
        token = cls.model_validate(data)
        return token.model_copy(
            update={"expires_at": issued_at + timedelta(seconds=token.expires_in)}
        )

    @property
    def scopes(self) -> frozenset[str]:
        """Granted scopes, parsed from the space-separated ``scope`` field."""
        if not self.scope:
            return frozenset()
        return frozenset(self.scope.split())

    def is_expired(self, now: datetime, margin: timedelta = timedelta(0)) -> bool:
        """Return ``True`` once ``now`` has reached ``expires_at`` minus *margin*.

        A token without ``expires_at`` (never stamped) is treated as expired.
        """
        if self.expires_at is None:
            return True
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at - margin


# --- Pagination envelopes ---


class Page(BaseModel, Generic[T]):
    """Offset-based page envelope: ``{items, next, total, limit, offset}``."""

    items: list[T]
    next: Optional[str] = None
    total: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    href: Optional[str] = None
    previous: Optional[str] = None


class Cursors(BaseModel):
    after: Optional[str] = None
    before: Optional[str] = None


class CursorPage(BaseModel, Generic[T]):
    """Cursor-based page envelope used by follow and recently-played listings."""

    items: list[T]
    next: Optional[str] = None
    total: Optional[int] = None
    limit: Optional[int] = None
    href: Optional[str] = None
    cursors: Optional[Cursors] = None


# --- Shared resource fragments ---


class Image(BaseModel):
    url: str
    height: Optional[int] = None
    width: Optional[int] = None


class ExternalUrls(BaseModel):
    spotify: Optional[str] = None


class Followers(BaseModel):
    href: Optional[str] = None
    total: int = 0


class RepeatState(str, enum.Enum):
    """Repeat mode accepted by ``me/player/repeat``."""

    TRACK = "track"
    CONTEXT = "context"
    OFF = "off"


class FollowedArtistsType(str, enum.Enum):
    ARTIST = "artist"


# --- Artists / albums / tracks ---


class SimplifiedArtist(BaseModel):
    id: str
    name: str
    uri: Optional[str] = None
    href: Optional[str] = None
    external_urls: Optional[ExternalUrls] = None


class Artist(SimplifiedArtist):
    genres: list[str] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
    popularity: Optional[int] = None
    followers: Optional[Followers] = None


class SimplifiedAlbum(BaseModel):
    id: str
    name: str
    album_type: Optional[str] = None
    total_tracks: Optional[int] = None
    release_date: Optional[str] = None
    release_date_precision: Optional[str] = None
    uri: Optional[str] = None
    images: list[Image] = Field(default_factory=list)
    artists: list[SimplifiedArtist] = Field(default_factory=list)


class SimplifiedTrack(BaseModel):
    id: Optional[str] = None
    name: str
    duration_ms: Optional[int] = None
    explicit: bool = False
    track_number: Optional[int] = None
    uri: Optional[str] = None
    artists: list[SimplifiedArtist] = Field(default_factory=list)


class Track(SimplifiedTrack):
    album: Optional[SimplifiedAlbum] = None
    popularity: Optional[int] = None
    is_local: bool = False


class Album(SimplifiedAlbum):
    label: Optional[str] = None
    popularity: Optional[int] = None
    genres: list[str] = Field(default_factory=list)
    tracks: Optional[Page[SimplifiedTrack]] = None


class Albums(BaseModel):
    """Wrapper returned by ``GET albums?ids=...``; missing ids come back as ``null``."""

    albums: list[Optional[Album]]


class SavedAlbum(BaseModel):
    added_at: Optional[datetime] = None
    album: Album


class SavedTrack(BaseModel):
    added_at: Optional[datetime] = None
    track: Track


# --- Users ---


class UserReference(BaseModel):
    id: str
    display_name: Optional[str] = None
    uri: Optional[str] = None
    href: Optional[str] = None
    external_urls: Optional[ExternalUrls] = None


class CurrentUserProfile(BaseModel):
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    product: Optional[str] = None
    uri: Optional[str] = None
    href: Optional[str] = None
    images: list[Image] = Field(default_factory=list)
    followers: Optional[Followers] = None
    external_urls: Optional[ExternalUrls] = None


class FollowedArtists(BaseModel):
    """Envelope of ``GET me/following``: the cursor page is nested under ``artists``."""

    artists: CursorPage[Artist]


# --- Playlists ---


class TrackReference(BaseModel):
    href: Optional[str] = None
    total: int = 0


class PlaylistTrack(BaseModel):
    added_at: Optional[datetime] = None
    added_by: Optional[UserReference] = None
    is_local: bool = False
    track: Optional[Track] = None


class SimplifiedPlaylist(BaseModel):
    id: str
    name: str
    collaborative: bool = False
    description: Optional[str] = None
    public: Optional[bool] = None
    snapshot_id: Optional[str] = None
    uri: Optional[str] = None
    href: Optional[str] = None
    images: Optional[list[Image]] = None
    owner: Optional[UserReference] = None
    tracks: Optional[TrackReference] = None


class Playlist(SimplifiedPlaylist):
    followers: Optional[Followers] = None
    tracks: Optional[Page[PlaylistTrack]] = None  # type: ignore[assignment]


class SnapshotResponse(BaseModel):
    snapshot_id: str


# --- Player ---


class Device(BaseModel):
    id: Optional[str] = None
    name: str
    type: str
    is_active: bool = False
    is_private_session: bool = False
    is_restricted: bool = False
    volume_percent: Optional[int] = None


class PlaybackState(BaseModel):
    device: Optional[Device] = None
    repeat_state: Optional[RepeatState] = None
    shuffle_state: Optional[bool] = None
    timestamp: Optional[int] = None
    progress_ms: Optional[int] = None
    is_playing: bool = False
    currently_playing_type: Optional[str] = None
    item: Optional[Track] = None
