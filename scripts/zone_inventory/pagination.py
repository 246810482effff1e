"""Page-number pagination and the per-account deadline."""

from __future__ import annotations

import time
from typing import Any, Callable, Generic, Iterator, NamedTuple, Sequence, TypeVar

T = TypeVar("T")


class Page(NamedTuple):
    items: Sequence[Any]
    has_more: bool


class DeadlineExceeded(TimeoutError):
    """The account's operation deadline expired."""


class Deadline:
    """Monotonic deadline shared by every fetch of one account."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(self._expires_at - time.monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def check(self) -> None:
        if self.expired:
            raise DeadlineExceeded(f"deadline of {self.seconds:g}s exceeded")


class PageCursor(Generic[T]):
    """Lazy, non-restartable iterator over the item batches of a paginated collection.

    ``fetch(page_number)`` returns a ``Page``. Iteration stops on an empty
    batch (even if the API claims more pages) or once ``has_more`` is false.
    A fetch error ends the cursor and propagates; batches already yielded
    stay with the caller. ``page`` is the number of the page last requested.
    """

    def __init__(self, fetch: Callable[[int], Page], start_page: int = 1) -> None:
        self._fetch = fetch
        self._done = False
        self._next_page = start_page
        self.page = start_page
        self.pages_fetched = 0

    def __iter__(self) -> Iterator[list[T]]:
        return self

    def __next__(self) -> list[T]:
        if self._done:
            raise StopIteration
        self.page = self._next_page
        try:
            items, has_more = self._fetch(self.page)
        except BaseException:
            self._done = True
            raise
        self.pages_fetched += 1
        if not items:
            self._done = True
            raise StopIteration
        if has_more:
            self._next_page = self.page + 1
        else:
            self._done = True
        return list(items)


def iter_pages(fetch: Callable[[int], Page], start_page: int = 1) -> PageCursor[T]:
    return PageCursor(fetch, start_page)
