"""Module to define the PageReader interface."""

from collections.abc import AsyncGenerator, Generator
from typing import Any, Protocol

from .cursor import Cursor

# pylint: disable=R0903


class PageReader(Protocol):
    """
    PageReader is an interface describing an abstraction for reading one page of a source
    at server side, to be served by `PageFastApiHandler`.
    """

    def read_page(
        self,
        cursor: Cursor,
        after: str | None,
    ) -> Generator[Any, None, None] | AsyncGenerator[Any, None]:
        """
        Read at most `cursor.limit` JSON serialisable elements.

        :param cursor: the requested page and page size
        :param after: the key of the last element the client has seen, when it uses
            keyset pagination instead of page numbers
        """
        ...

    def count(self) -> int | None:
        """Return the total number of elements in the source, None when it is not cheap to know."""
        ...
