"""
Module to flatten the batches of a pager into one lazy sequence of elements.

The factories on `ElementPager` and `AsyncElementPager` cover the usual shapes of a
fetch function: by cursor only, by cursor and the last element seen (keyset pagination),
and returning a domain object which needs mapping onto its elements.
"""

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Sequence
from typing import Any, Generic, TypeVar

from .constants import DEFAULT_ELEMENT_TIMES_LIMIT
from .cursor import Cursor
from .pager import AsyncModelPager, ModelPager
from .producer import (
    AsyncDelegatedProducer,
    BatchMapper,
    DelegatedProducer,
    ignore_previous,
    ordered,
)

E = TypeVar("E")
D = TypeVar("D")


class ElementPager(ModelPager[Sequence[E]]):
    """Walk a producer of element sequences and iterate over the elements one by one."""

    default_times_limit = DEFAULT_ELEMENT_TIMES_LIMIT

    @classmethod
    def of_pages(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor], Sequence[E]],
        *,
        times_limit: int | None = None,
    ) -> "ElementPager[E]":
        """
        Build a pager over a fetch function returning at most `batch_size` elements
        for the page of the given cursor. Fewer elements end the walk.
        """
        producer = DelegatedProducer.of_collection(lambda cursor, _last: fetch(cursor))
        return cls(batch_size, producer, times_limit=times_limit)

    @classmethod
    def of_ordered(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor, E | None], Sequence[E]],
        *,
        times_limit: int | None = None,
    ) -> "ElementPager[E]":
        """
        Build a pager over a fetch function which also receives the last element of the
        previous batch (None on the first fetch). For sorted sources this allows seeking
        past the last key instead of skipping an ever growing offset.
        """
        return cls(batch_size, DelegatedProducer.of_collection(fetch), times_limit=times_limit)

    @classmethod
    def of(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor], D],
        elements: Callable[[D], Sequence[E]],
        size: Callable[[D], int],
        total: Callable[[D], int] | None = None,
        *,
        times_limit: int | None = None,
    ) -> "ElementPager[E]":
        """
        Build a pager over a fetch function returning a domain object, e.g. a response
        envelope, along with the functions extracting its elements, size and total.
        """
        producer = DelegatedProducer(ignore_previous(fetch), BatchMapper(elements, size, total))
        return cls(batch_size, producer, times_limit=times_limit)

    @classmethod
    def of_ordered_mapped(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor, E | None], D],
        elements: Callable[[D], Sequence[E]],
        size: Callable[[D], int],
        total: Callable[[D], int] | None = None,
        *,
        times_limit: int | None = None,
    ) -> "ElementPager[E]":
        """Combine `of_ordered` and `of`: keyset fetching of a domain object."""
        producer = DelegatedProducer(ordered(fetch), BatchMapper(elements, size, total))
        return cls(batch_size, producer, times_limit=times_limit)

    @classmethod
    def with_cursor(
        cls,
        cursor: Cursor,
        fetch: Callable[[Sequence[E] | None], Sequence[E]],
        size: Callable[[Sequence[E]], int] = len,
        *,
        times_limit: int | None = None,
    ) -> "ElementPager[E]":
        """
        Build a pager over a fetch function which holds on to `cursor` itself.
        With `Cursor.top` this re-reads the first page until it comes back short,
        which suits sources the consumer drains as it goes.
        """
        producer = DelegatedProducer.of_model(lambda _cursor, previous: fetch(previous), size)
        return cls.over(cursor, producer, times_limit=times_limit)

    def concat(self, mapper: Callable[[E], Any] | None = None) -> Iterator[Any]:
        """
        Return a one-shot iterator over every element of every batch, in order.

        :param mapper: applied lazily to each element
        """
        for batch in self:
            for element in batch:
                yield element if mapper is None else mapper(element)

    def flat(self, mapper: Callable[[E], Any] | None = None) -> "Flattened[Any]":
        """Return a re-iterable view of the elements; every iteration is a new walk."""
        return Flattened(self, mapper)


class Flattened(Generic[E]):
    """An iterable of the elements of an `ElementPager`."""

    def __init__(self, pager: ElementPager[Any], mapper: Callable[[Any], E] | None) -> None:
        self._pager = pager
        self._mapper = mapper

    def __iter__(self) -> Iterator[E]:
        return self._pager.concat(self._mapper)


class AsyncElementPager(AsyncModelPager[Sequence[E]]):
    """The coroutine flavour of `ElementPager`."""

    default_times_limit = DEFAULT_ELEMENT_TIMES_LIMIT

    @classmethod
    def of_pages(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor], Awaitable[Sequence[E]]],
        *,
        times_limit: int | None = None,
    ) -> "AsyncElementPager[E]":
        """Build a pager over a coroutine function fetching the page of the given cursor."""
        producer = AsyncDelegatedProducer.of_collection(lambda cursor, _last: fetch(cursor))
        return cls(batch_size, producer, times_limit=times_limit)

    @classmethod
    def of_ordered(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor, E | None], Awaitable[Sequence[E]]],
        *,
        times_limit: int | None = None,
    ) -> "AsyncElementPager[E]":
        """Build a pager over a coroutine function which also receives the last element seen."""
        return cls(
            batch_size, AsyncDelegatedProducer.of_collection(fetch), times_limit=times_limit
        )

    @classmethod
    def of(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor], Awaitable[D]],
        elements: Callable[[D], Sequence[E]],
        size: Callable[[D], int],
        total: Callable[[D], int] | None = None,
        *,
        times_limit: int | None = None,
    ) -> "AsyncElementPager[E]":
        """Build a pager over a coroutine function returning a domain object."""
        producer = AsyncDelegatedProducer(
            ignore_previous(fetch), BatchMapper(elements, size, total)
        )
        return cls(batch_size, producer, times_limit=times_limit)

    @classmethod
    def of_ordered_mapped(
        cls,
        batch_size: int,
        fetch: Callable[[Cursor, E | None], Awaitable[D]],
        elements: Callable[[D], Sequence[E]],
        size: Callable[[D], int],
        total: Callable[[D], int] | None = None,
        *,
        times_limit: int | None = None,
    ) -> "AsyncElementPager[E]":
        """Keyset fetching of a domain object with a coroutine function."""
        producer = AsyncDelegatedProducer(ordered(fetch), BatchMapper(elements, size, total))
        return cls(batch_size, producer, times_limit=times_limit)

    @classmethod
    def with_cursor(
        cls,
        cursor: Cursor,
        fetch: Callable[[Sequence[E] | None], Awaitable[Sequence[E]]],
        size: Callable[[Sequence[E]], int] = len,
        *,
        times_limit: int | None = None,
    ) -> "AsyncElementPager[E]":
        """Build a pager over a coroutine function which holds on to `cursor` itself."""
        producer = AsyncDelegatedProducer.of_model(
            lambda _cursor, previous: fetch(previous), size
        )
        return cls.over(cursor, producer, times_limit=times_limit)

    async def concat(self, mapper: Callable[[E], Any] | None = None) -> AsyncIterator[Any]:
        """Return a one-shot async iterator over every element of every batch, in order."""
        async for batch in self:
            for element in batch:
                yield element if mapper is None else mapper(element)

    def flat(self, mapper: Callable[[E], Any] | None = None) -> "AsyncFlattened[Any]":
        """Return a re-iterable async view of the elements; every iteration is a new walk."""
        return AsyncFlattened(self, mapper)


class AsyncFlattened(Generic[E]):
    """An async iterable of the elements of an `AsyncElementPager`."""

    def __init__(self, pager: AsyncElementPager[Any], mapper: Callable[[Any], E] | None) -> None:
        self._pager = pager
        self._mapper = mapper

    def __aiter__(self) -> AsyncIterator[E]:
        return self._pager.concat(self._mapper)
