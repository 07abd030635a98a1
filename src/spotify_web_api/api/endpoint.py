"""Declarative description of a single Web API call.

An endpoint is a small dataclass: its fields are the call's inputs and
its class attributes say how the call is made::

    @dataclass
    class GetPlaylist(Endpoint):
        path = "playlists/{playlist_id}"
        response_type = Playlist

        playlist_id: str
        market: Optional[str] = None

        def parameters(self) -> QueryParams:
            return QueryParams().push_opt("market", self.market)

The descriptor is pure data; :func:`spotify_web_api.api.request.build_request`
turns it into an :class:`httpx.Request`, and the clients execute it.

Parameter containers:

- :class:`QueryParams` -- ordered query pairs; repeated keys and
  declaration order are preserved.
- :class:`FormParams` -- the same, encoded as a form body.
- :class:`JsonParams` -- helpers for JSON bodies, including
  :meth:`JsonParams.clean` which drops null and empty members.
"""

from __future__ import annotations

import enum
import json
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Iterable, Iterator, Optional
from urllib.parse import quote, urlencode

from spotify_web_api.exceptions import ConfigurationError


class HTTPMethod(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class BodyEncoding(str, enum.Enum):
    """How a request body is serialised on the wire."""

    FORM = "form"
    JSON = "json"

    @property
    def content_type(self) -> str:
        if self is BodyEncoding.FORM:
            return "application/x-www-form-urlencoded"
        return "application/json"


def param_value(value: Any) -> str:
    """Render one query or form value as a string.

    Booleans become ``true``/``false``, enums their value, datetimes
    ISO 8601 in UTC, and lists are comma-joined in the caller's order.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat(timespec="seconds") + "Z"
    if isinstance(value, (list, tuple)):
        return ",".join(param_value(item) for item in value)
    return str(value)


class QueryParams:
    """Ordered list of ``(key, value)`` pairs.

    ``push`` and friends return ``self`` so calls can be chained.
    """

    def __init__(self, pairs: Optional[Iterable[tuple[str, Any]]] = None) -> None:
        self._pairs: list[tuple[str, str]] = []
        if pairs is not None:
            self.extend(pairs)

    def push(self, key: str, value: Any) -> QueryParams:
        self._pairs.append((key, param_value(value)))
        return self

    def push_opt(self, key: str, value: Any) -> QueryParams:
        """Add *key* only when *value* is not ``None``."""
        if value is not None:
            self.push(key, value)
        return self

    def extend(self, pairs: Iterable[tuple[str, Any]]) -> QueryParams:
        for key, value in pairs:
            self.push(key, value)
        return self

    def items(self) -> list[tuple[str, str]]:
        return list(self._pairs)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __bool__(self) -> bool:
        return bool(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryParams):
            return NotImplemented
        return self._pairs == other._pairs

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._pairs!r})"


class FormParams(QueryParams):
    """Ordered form fields, sent as ``application/x-www-form-urlencoded``."""

    def to_body(self) -> Optional[RequestBody]:
        if not self:
            return None
        return RequestBody(BodyEncoding.FORM, urlencode(self.items()).encode("utf-8"))


class JsonParams:
    """Helpers for JSON request bodies."""

    @staticmethod
    def clean(value: dict[str, Any]) -> dict[str, Any]:
        """Return *value* without top-level members that are null, ``[]`` or ``{}``."""
        return {
            key: member
            for key, member in value.items()
            if member is not None and member != [] and member != {}
        }

    @staticmethod
    def to_body(value: Any, clean: bool = False) -> RequestBody:
        if clean and isinstance(value, dict):
            value = JsonParams.clean(value)
        content = json.dumps(value, separators=(",", ":"), default=param_value)
        return RequestBody(BodyEncoding.JSON, content.encode("utf-8"))


@dataclass(frozen=True)
class RequestBody:
    """An encoded request body and the encoding it was produced with."""

    encoding: BodyEncoding
    content: bytes

    @property
    def content_type(self) -> str:
        return self.encoding.content_type


class Endpoint:
    """Base class of all endpoint descriptors.

    Subclasses are dataclasses whose fields supply the path placeholders,
    query parameters and body. Class attributes:

    * ``method`` -- HTTP method, ``GET`` unless overridden.
    * ``path`` -- path template relative to the API base URL, with
      ``{field}`` placeholders filled from same-named attributes.
    * ``response_type`` -- type the response is decoded into by
      :meth:`~spotify_web_api.client.SpotifyClient.execute`; ``None``
      means plain JSON.
    * ``pageable`` -- the response is a page envelope that
      :meth:`~spotify_web_api.client.SpotifyClient.paged` may follow.
    """

    method: ClassVar[HTTPMethod] = HTTPMethod.GET
    path: ClassVar[str] = ""
    response_type: ClassVar[Any] = None
    pageable: ClassVar[bool] = False

    def endpoint(self) -> str:
        """Return the concrete path with every placeholder percent-encoded.

        Raises:
            ConfigurationError: If a placeholder has no value or is empty.
        """
        values: dict[str, str] = {}
        for _, name, _, _ in string.Formatter().parse(self.path):
            if not name:
                continue
            value = getattr(self, name, None)
            if value is None or param_value(value) == "":
                raise ConfigurationError(
                    f"{type(self).__name__}: path parameter '{name}' must not be empty"
                )
            values[name] = quote(param_value(value), safe="")
        return self.path.format(**values)

    def parameters(self) -> QueryParams:
        return QueryParams()

    def body(self) -> Optional[RequestBody]:
        return None


@dataclass
class RawEndpoint(Endpoint):
    """Ad hoc endpoint for paths the catalog does not describe.

    ``raw_path`` is sent as given (it is not a template), relative to the
    API base URL.
    """

    pageable = True

    raw_path: str = ""
    http_method: HTTPMethod = HTTPMethod.GET
    params: list[tuple[str, Any]] = field(default_factory=list)
    json_body: Any = None

    @property
    def method(self) -> HTTPMethod:  # type: ignore[override]
        return self.http_method

    def endpoint(self) -> str:
        if not self.raw_path.strip("/"):
            raise ConfigurationError("RawEndpoint: path must not be empty")
        return self.raw_path.lstrip("/")

    def parameters(self) -> QueryParams:
        return QueryParams(self.params)

    def body(self) -> Optional[RequestBody]:
        if self.json_body is None:
            return None
        return JsonParams.to_body(self.json_body)
