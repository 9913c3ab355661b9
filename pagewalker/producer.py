"""
Module to define the producer interfaces which supply batches to the pagers,
and the adapters turning plain fetch functions into producers.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from .batch import Batch
from .cursor import Cursor

# pylint: disable=R0903

M = TypeVar("M")
D = TypeVar("D")
E = TypeVar("E")
L = TypeVar("L", contravariant=True)
R = TypeVar("R", covariant=True)


class DataProducer(Protocol[L, R]):
    """
    DataProducer is an interface describing a raw fetch function: it returns whatever the
    data source hands out for a cursor, e.g. a list of rows or a response envelope.
    A `BatchMapper` turns the result into a `Batch`.
    """

    def __call__(self, cursor: Cursor, hint: L | None, /) -> R:
        """
        Fetch the data for the page of the cursor.

        :param cursor: the page and limit to fetch
        :param hint: what the previous batch left behind (its payload or its last element),
            None on the first fetch
        """
        ...


class PageProducer(Protocol[M]):
    """
    PageProducer is an interface describing a function which fetches the batch for a cursor.

    Implementations must not return more elements than `cursor.limit`.
    """

    def __call__(self, cursor: Cursor, previous: M | None) -> Batch[M]:
        """
        Fetch the next batch.

        :param cursor: the page and limit of the batch to fetch
        :param previous: the payload of the previous batch, None on the first fetch
        """
        ...


class AsyncPageProducer(Protocol[M]):
    """AsyncPageProducer is the coroutine flavour of `PageProducer`."""

    async def __call__(self, cursor: Cursor, previous: M | None) -> Batch[M]:
        """
        Fetch the next batch.

        :param cursor: the page and limit of the batch to fetch
        :param previous: the payload of the previous batch, None on the first fetch
        """
        ...


def last_element(payload: Sequence[E] | None) -> E | None:
    """Return the last element of a batch payload, None if there is no payload or it is empty."""
    if not payload:
        return None
    return payload[-1]


def ordered(fetch: DataProducer[E, D]) -> DataProducer[Sequence[E], D]:
    """
    Adapt a fetch function taking the last element of the previous batch into one taking the
    whole previous payload. This is what keyset pagination needs: "the next N after key K".

    Works for coroutine functions too, since the result of `fetch` is passed through untouched.
    """

    def fetch_after_last(cursor: Cursor, previous: Sequence[E] | None) -> D:
        return fetch(cursor, last_element(previous))

    return fetch_after_last


def ignore_previous(fetch: Callable[[Cursor], D]) -> DataProducer[Any, D]:
    """Adapt a fetch function which only needs the cursor into a producer style fetch function."""

    def fetch_page(cursor: Cursor, _previous: Any) -> D:
        return fetch(cursor)

    return fetch_page


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class BatchMapper(Generic[D, M]):
    """
    The three functions mapping whatever a data source returns onto a `Batch`.

    :param elements: extracts the payload the pager yields
    :param size: extracts the number of elements in the payload
    :param total: optionally extracts the total number of elements across the whole walk
    """

    elements: Callable[[D], M]
    size: Callable[[D], int]
    total: Callable[[D], int] | None = None

    @classmethod
    def identity(cls) -> "BatchMapper[Any, Any]":
        """Return a mapper using a sized collection as its own payload."""
        return cls(_identity, len)

    def __call__(self, data: D) -> Batch[M]:
        total = self.total(data) if self.total is not None else None
        return Batch(self.elements(data), self.size(data), total)


@dataclass(frozen=True)
class DelegatedProducer(Generic[M, D]):
    """
    A `PageProducer` composed of a raw fetch function and a `BatchMapper`, so that the fetch
    function can return any domain object.

    :param fetch: called with the cursor and the previous payload, returns the domain object
    :param mapper: maps the domain object onto a batch
    """

    fetch: DataProducer[M, D]
    mapper: BatchMapper[D, M]

    @classmethod
    def of_collection(
        cls, fetch: DataProducer[E, Sequence[E]]
    ) -> "DelegatedProducer[Sequence[E], Sequence[E]]":
        """
        Build a producer over a fetch function returning a sequence of elements.

        :param fetch: called with the cursor and the last element of the previous batch,
            which is None on the first fetch or after an empty batch
        """
        return cls(ordered(fetch), BatchMapper.identity())

    @classmethod
    def of_model(
        cls, fetch: DataProducer[M, M], size: Callable[[M], int]
    ) -> "DelegatedProducer[M, M]":
        """Build a producer whose payload is the fetched object itself."""
        return cls(fetch, BatchMapper(_identity, size))

    def __call__(self, cursor: Cursor, previous: M | None) -> Batch[M]:
        return self.mapper(self.fetch(cursor, previous))


@dataclass(frozen=True)
class AsyncDelegatedProducer(Generic[M, D]):
    """
    The coroutine flavour of `DelegatedProducer`: `fetch` returns an awaitable domain object.
    """

    fetch: DataProducer[M, Awaitable[D]]
    mapper: BatchMapper[D, M]

    @classmethod
    def of_collection(
        cls, fetch: DataProducer[E, Awaitable[Sequence[E]]]
    ) -> "AsyncDelegatedProducer[Sequence[E], Sequence[E]]":
        """Build a producer over a coroutine function returning a sequence of elements."""
        return cls(ordered(fetch), BatchMapper.identity())

    @classmethod
    def of_model(
        cls, fetch: DataProducer[M, Awaitable[M]], size: Callable[[M], int]
    ) -> "AsyncDelegatedProducer[M, M]":
        """Build a producer whose payload is the fetched object itself."""
        return cls(fetch, BatchMapper(_identity, size))

    async def __call__(self, cursor: Cursor, previous: M | None) -> Batch[M]:
        return self.mapper(await self.fetch(cursor, previous))
