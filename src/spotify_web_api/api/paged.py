"""Pagination driver for offset-paged listings.

A :class:`Paged` sequence walks a pageable endpoint one page at a time:

1. The first request is the endpoint itself with ``offset`` and ``limit``
   appended to its parameters.
2. Every further request follows the previous page's absolute ``next``
   URL verbatim.
3. The walk ends when ``next`` is null or the :class:`Pagination` bound
   is reached.

Exactly one HTTP call is made per page, only when the consumer asks for
it. The same cursor logic backs every consumption style: page by page
(:meth:`Paged.pages` / :meth:`Paged.apages`), item by item (iteration /
async iteration), or everything at once (:meth:`Paged.all` /
:meth:`Paged.aall`). A sequence is single-use; once exhausted, or after
a page failed, it yields nothing more.

Example::

    for playlist in client.paged(GetCurrentUserPlaylists(), SimplifiedPlaylist):
        print(playlist.name)
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Generic,
    Iterator,
    Optional,
    TypeVar,
)

from spotify_web_api.exceptions import ConfigurationError, UnsupportedOperationError
from spotify_web_api.models import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_LIMIT = 50


@dataclass(frozen=True)
class Pagination:
    """How much of a listing to fetch.

    Use the constructors rather than the fields:

    * :meth:`all` -- every item, in pages of ``MAX_LIMIT``.
    * :meth:`limit` -- at most *n* items, with *n* capped at ``MAX_LIMIT``.
    * :meth:`page` -- exactly one page at a given offset; the page size is
      capped at ``MAX_LIMIT``.
    """

    page_size: int = MAX_LIMIT
    offset: int = 0
    max_items: Optional[int] = None
    single_page: bool = False

    @classmethod
    def all(cls) -> Pagination:
        return cls()

    @classmethod
    def limit(cls, n: int) -> Pagination:
        if n <= 0:
            raise ConfigurationError(f"Pagination limit must be positive, got {n}")
        n = min(n, MAX_LIMIT)
        return cls(page_size=n, max_items=n)

    @classmethod
    def page(cls, limit: int = MAX_LIMIT, offset: int = 0) -> Pagination:
        if limit <= 0:
            raise ConfigurationError(f"Page size must be positive, got {limit}")
        limit = min(limit, MAX_LIMIT)
        if offset < 0:
            raise ConfigurationError(f"Page offset must not be negative, got {offset}")
        return cls(page_size=limit, offset=offset, max_items=limit, single_page=True)


@dataclass(frozen=True)
class PageRequest:
    """What the executor should fetch for the next page.

    Either ``url`` (an absolute ``next`` link) or ``params`` (pairs to
    append to the endpoint's own parameters) is set.
    """

    url: Optional[str] = None
    params: tuple[tuple[str, str], ...] = ()


class PageCursor:
    """Position of a paged walk: first page, a ``next`` URL, or done."""

    class Kind(enum.Enum):
        FIRST = "first"
        NEXT = "next"
        DONE = "done"

    def __init__(self, kind: PageCursor.Kind, url: Optional[str] = None) -> None:
        self.kind = kind
        self.url = url

    @classmethod
    def first(cls) -> PageCursor:
        return cls(cls.Kind.FIRST)

    @classmethod
    def next(cls, url: str) -> PageCursor:
        return cls(cls.Kind.NEXT, url)

    @classmethod
    def done(cls) -> PageCursor:
        return cls(cls.Kind.DONE)

    @property
    def is_done(self) -> bool:
        return self.kind is PageCursor.Kind.DONE

    def __repr__(self) -> str:
        if self.kind is PageCursor.Kind.NEXT:
            return f"PageCursor.next({self.url!r})"
        return f"PageCursor.{self.kind.value}()"


def page_type(response_type: Any, item_type: Any = None) -> Any:
    """Return the ``Page[...]`` model a paged walk decodes each page into.

    An explicit *item_type* wins; otherwise an endpoint declaring
    ``response_type = Page[X]`` supplies ``X``. Items stay plain JSON when
    neither says anything.
    """
    if item_type is not None:
        return Page[item_type]
    metadata = getattr(response_type, "__pydantic_generic_metadata__", None)
    if metadata and metadata.get("origin") is Page:
        return response_type
    return Page[Any]


PageFetcher = Callable[[PageRequest], Page[Any]]
AsyncPageFetcher = Callable[[PageRequest], Awaitable[Page[Any]]]


class Paged(Generic[T]):
    """Lazy, single-use sequence over the items of a paged listing.

    Built by the clients' ``paged()`` method; a blocking client supplies
    *fetch*, an async one *afetch*.

    Args:
        pagination: Bound of the walk.
        fetch: Blocking page fetcher.
        afetch: Async page fetcher.
    """

    def __init__(
        self,
        pagination: Optional[Pagination] = None,
        fetch: Optional[PageFetcher] = None,
        afetch: Optional[AsyncPageFetcher] = None,
    ) -> None:
        self._pagination = pagination or Pagination.all()
        self._fetch = fetch
        self._afetch = afetch
        self._cursor = PageCursor.first()
        self._seen = 0

    @property
    def cursor(self) -> PageCursor:
        return self._cursor

    @property
    def pagination(self) -> Pagination:
        return self._pagination

    # ------------------------------------------------------------------ #
    # Cursor logic
    # ------------------------------------------------------------------ #

    def _next_request(self) -> Optional[PageRequest]:
        cursor = self._cursor
        if cursor.kind is PageCursor.Kind.DONE:
            return None
        if cursor.kind is PageCursor.Kind.NEXT:
            return PageRequest(url=cursor.url)
        return PageRequest(
            params=(
                ("offset", str(self._pagination.offset)),
                ("limit", str(self._pagination.page_size)),
            )
        )

    def _advance(self, page: Page[Any]) -> Page[Any]:
        """Move the cursor past *page* and return it truncated to the bound."""
        items = page.items
        max_items = self._pagination.max_items
        if max_items is not None:
            items = items[: max(max_items - self._seen, 0)]
        self._seen += len(items)

        reached_bound = max_items is not None and self._seen >= max_items
        if self._pagination.single_page or reached_bound or not page.next or not page.items:
            self._cursor = PageCursor.done()
        else:
            self._cursor = PageCursor.next(page.next)

        if len(items) != len(page.items):
            page = page.model_copy(update={"items": items})
        return page

    def _halt(self) -> None:
        self._cursor = PageCursor.done()

    # ------------------------------------------------------------------ #
    # Blocking consumption
    # ------------------------------------------------------------------ #

    def pages(self) -> Iterator[Page[T]]:
        """Yield one page per pull, fetching it on demand."""
        if self._fetch is None:
            raise UnsupportedOperationError("This sequence is async; use apages() instead")
        while True:
            request = self._next_request()
            if request is None:
                return
            logger.debug("Fetching page %s", request.url or dict(request.params))
            try:
                page = self._fetch(request)
            except BaseException:
                self._halt()
                raise
            yield self._advance(page)

    def __iter__(self) -> Iterator[T]:
        for page in self.pages():
            yield from page.items

    def all(self) -> list[T]:
        """Fetch every remaining page and return the concatenated items."""
        return list(self)

    # ------------------------------------------------------------------ #
    # Async consumption
    # ------------------------------------------------------------------ #

    async def apages(self) -> AsyncIterator[Page[T]]:
        """Async counterpart of :meth:`pages`."""
        if self._afetch is None:
            raise UnsupportedOperationError("This sequence is blocking; use pages() instead")
        while True:
            request = self._next_request()
            if request is None:
                return
            logger.debug("Fetching page %s", request.url or dict(request.params))
            try:
                page = await self._afetch(request)
            except BaseException:
                self._halt()
                raise
            yield self._advance(page)

    async def __aiter__(self) -> AsyncIterator[T]:
        async for page in self.apages():
            for item in page.items:
                yield item

    async def aall(self) -> list[T]:
        """Async counterpart of :meth:`all`."""
        return [item async for item in self]
