"""This module defines the Cursor which tracks where a walk is within a paginated source."""

from enum import Enum

from .constants import DEFAULT_LIMIT
from .errors import ErrUnpaged, IllegalPaginationState


class CursorKind(Enum):
    """The fixed set of behaviours a cursor can have."""

    PAGED = "paged"
    """A regular cursor which can be moved between pages."""

    ALL = "all"
    """An unpaged cursor requesting everything in one fetch. It rejects every mutation."""

    TOP = "top"
    """A cursor pinned to the first page. Requests to change the page are ignored."""


def _check_page(page: int | None) -> int | None:
    if page is not None and page < 1:
        msg = f"page must be >= 1, got {page}"
        raise ValueError(msg)
    return page


def _check_limit(limit: int) -> int:
    if limit < 1:
        msg = f"limit must be >= 1, got {limit}"
        raise ValueError(msg)
    return limit


class Cursor:
    """
    The page number and batch size of the next fetch.

    A cursor without a page is "unpaged": it stands for a single unbounded request and has no
    offset. Cursors are mutated in place while a walk progresses and must not be shared
    between walks.

    :param page: The 1-based page number, or None for an unpaged cursor
    :param limit: The maximum number of elements per page
    :param kind: The behaviour of the cursor, see `CursorKind`
    """

    def __init__(
        self,
        page: int | None = None,
        limit: int = DEFAULT_LIMIT,
        kind: CursorKind = CursorKind.PAGED,
    ) -> None:
        if kind is CursorKind.ALL:
            page = None
        elif kind is CursorKind.TOP:
            page = 1
        self._kind = kind
        self._page = _check_page(page)
        self._limit = _check_limit(limit)

    @classmethod
    def of(cls, page: int, limit: int) -> "Cursor":
        """Return a paged cursor positioned at the given page."""
        return cls(page, limit)

    @classmethod
    def top(cls, limit: int) -> "Cursor":
        """Return a cursor which always requests the first `limit` elements."""
        return cls(1, limit, CursorKind.TOP)

    @property
    def kind(self) -> CursorKind:
        """Return the behaviour of this cursor."""
        return self._kind

    @property
    def page(self) -> int | None:
        """Return the current page number, None when unpaged."""
        return self._page

    @page.setter
    def page(self, page: int | None) -> None:
        if self._kind is CursorKind.ALL:
            raise IllegalPaginationState("the ALL cursor cannot change page")
        if self._kind is CursorKind.TOP:
            return
        self._page = _check_page(page)

    @property
    def limit(self) -> int:
        """Return the maximum number of elements per page."""
        return self._limit

    @limit.setter
    def limit(self, limit: int) -> None:
        if self._kind is CursorKind.ALL:
            raise IllegalPaginationState("the ALL cursor cannot change limit")
        self._limit = _check_limit(limit)

    @property
    def is_paged(self) -> bool:
        return self._page is not None

    @property
    def is_unpaged(self) -> bool:
        return self._page is None

    @property
    def is_first_page(self) -> bool:
        """Return whether the next fetch reads the first page, which an unpaged fetch always does."""
        return self._page is None or self._page == 1

    @property
    def offset(self) -> int | None:
        """Return the number of elements before the current page, None when unpaged."""
        if self._page is None:
            return None
        return (self._page - 1) * self._limit

    def require_page(self) -> int:
        """
        Return the current page number.

        :raises IllegalPaginationState: if the cursor is unpaged.
        """
        if self._page is None:
            raise ErrUnpaged
        return self._page

    def first(self) -> None:
        """
        Move to the first page. Unpaged cursors are left untouched.

        :raises IllegalPaginationState: if this is an ALL cursor.
        """
        if self._kind is CursorKind.ALL:
            raise IllegalPaginationState("the ALL cursor cannot be reset")
        if self._page is not None:
            self._page = 1

    def advance(self) -> None:
        """
        Move to the next page. TOP cursors stay on the first page.

        :raises IllegalPaginationState: if the cursor is unpaged.
        """
        if self._kind is CursorKind.ALL:
            raise IllegalPaginationState("the ALL cursor cannot advance")
        if self._page is None:
            raise IllegalPaginationState("an unpaged cursor cannot advance")
        if self._kind is CursorKind.TOP:
            return
        self._page += 1

    def is_exceeded(self, count: int) -> bool:
        """
        Return whether the cursor points past the end of a source holding `count` elements.

        :param count: The total number of elements in the source
        """
        offset = self.offset
        if offset is None:
            return count == 0
        return offset >= count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cursor):
            return NotImplemented
        return (self._kind, self._page, self._limit) == (other._kind, other._page, other._limit)

    # mutable, so unhashable
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Cursor(page={self._page!r}, limit={self._limit!r}, kind={self._kind})"

    def __str__(self) -> str:
        if self._page is None:
            return f"all elements (limit {self._limit})"
        return f"page {self._page} (limit {self._limit})"


ALL = Cursor(kind=CursorKind.ALL)
"""ALL is a special cursor: a single fetch of every element. It cannot be changed."""
