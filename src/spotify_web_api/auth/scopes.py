"""Authorization scopes understood by the accounts service.

Any iterable of :class:`Scope` members or plain strings is accepted where
scopes are requested; :func:`normalize_scopes` de-duplicates them while
keeping the caller's order.
"""

from __future__ import annotations

import enum
from typing import Iterable, Optional, Union


class Scope(str, enum.Enum):
    UGC_IMAGE_UPLOAD = "ugc-image-upload"
    USER_READ_PLAYBACK_STATE = "user-read-playback-state"
    USER_MODIFY_PLAYBACK_STATE = "user-modify-playback-state"
    USER_READ_CURRENTLY_PLAYING = "user-read-currently-playing"
    APP_REMOTE_CONTROL = "app-remote-control"
    STREAMING = "streaming"
    PLAYLIST_READ_PRIVATE = "playlist-read-private"
    PLAYLIST_READ_COLLABORATIVE = "playlist-read-collaborative"
    PLAYLIST_MODIFY_PRIVATE = "playlist-modify-private"
    PLAYLIST_MODIFY_PUBLIC = "playlist-modify-public"
    USER_FOLLOW_MODIFY = "user-follow-modify"
    USER_FOLLOW_READ = "user-follow-read"
    USER_READ_PLAYBACK_POSITION = "user-read-playback-position"
    USER_TOP_READ = "user-top-read"
    USER_READ_RECENTLY_PLAYED = "user-read-recently-played"
    USER_LIBRARY_MODIFY = "user-library-modify"
    USER_LIBRARY_READ = "user-library-read"
    USER_READ_EMAIL = "user-read-email"
    USER_READ_PRIVATE = "user-read-private"

    def __str__(self) -> str:
        return self.value


ScopeLike = Union[Scope, str]


def user_details() -> list[Scope]:
    return [Scope.USER_READ_EMAIL, Scope.USER_READ_PRIVATE]


def playlists() -> list[Scope]:
    return [
        Scope.PLAYLIST_READ_PRIVATE,
        Scope.PLAYLIST_READ_COLLABORATIVE,
        Scope.PLAYLIST_MODIFY_PRIVATE,
        Scope.PLAYLIST_MODIFY_PUBLIC,
    ]


def library() -> list[Scope]:
    return [Scope.USER_LIBRARY_READ, Scope.USER_LIBRARY_MODIFY]


def follow() -> list[Scope]:
    return [Scope.USER_FOLLOW_READ, Scope.USER_FOLLOW_MODIFY]


def playback() -> list[Scope]:
    return [
        Scope.USER_READ_PLAYBACK_STATE,
        Scope.USER_MODIFY_PLAYBACK_STATE,
        Scope.USER_READ_CURRENTLY_PLAYING,
        Scope.USER_READ_PLAYBACK_POSITION,
        Scope.USER_READ_RECENTLY_PLAYED,
    ]


def all_scopes() -> list[Scope]:
    return list(Scope)


def normalize_scopes(scopes: Optional[Iterable[ScopeLike]]) -> tuple[str, ...]:
    """Return *scopes* as plain strings, de-duplicated, in first-seen order."""
    if not scopes:
        return ()
    seen: dict[str, None] = {}
    for scope in scopes:
        value = scope.value if isinstance(scope, Scope) else str(scope).strip()
        if value:
            seen.setdefault(value, None)
    return tuple(seen)
