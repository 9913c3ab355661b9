"""
Module containing the iteration engine: pagers which walk a producer batch by batch
and expose the batches as a lazy iterator.
"""

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any, Generic, TypeVar

from .batch import Batch
from .constants import DEFAULT_TIMES_LIMIT
from .cursor import Cursor
from .errors import IterationLimitExceeded, ProducerContractViolation
from .producer import AsyncDelegatedProducer, AsyncPageProducer, DelegatedProducer, PageProducer

logger = logging.getLogger(__name__)

M = TypeVar("M")
P = TypeVar("P", bound="BasePager[Any]")


class _Walk(Generic[M]):
    """The state of a single walk over a producer. Not reusable, not thread safe."""

    def __init__(self, cursor: Cursor, times_limit: int) -> None:
        if cursor.is_paged:
            cursor.first()
        self.cursor = cursor
        self.times_limit = times_limit
        self.previous: M | None = None
        self.count = 0
        self.times = 0
        self.exceeded = False
        self.started = False

    def next_fetch(self) -> bool:
        """
        Prepare the cursor for the next fetch.

        :return: False when the walk is over and nothing must be fetched any more.
        :raises IterationLimitExceeded: if the walk already fetched more than `times_limit` batches.
        """
        if self.exceeded:
            return False
        if self.started:
            self.cursor.advance()
        self.started = True
        if self.times > self.times_limit:
            logger.error(
                "iteration_limit_exceeded",
                extra={"times_limit": self.times_limit, "count": self.count},
            )
            raise IterationLimitExceeded(self.times_limit)
        return True

    def accept(self, batch: Batch[M]) -> bool:
        """
        Apply the termination rules to a freshly fetched batch.

        :return: whether the batch payload must be yielded to the consumer.
        :raises ProducerContractViolation: if the batch holds more elements than requested.
        """
        size = batch.size
        limit = self.cursor.limit
        self.times += 1
        self.count += size
        logger.debug(
            "page_fetched",
            extra={
                "page": self.cursor.page,
                "limit": limit,
                "size": size,
                "total": batch.total,
                "times": self.times,
            },
        )

        if size == 0:
            self.exceeded = True
            return False
        if self.cursor.is_unpaged:
            # a single unbounded request, there is no next page to ask for
            self.exceeded = True
        elif size > limit:
            logger.error(
                "producer_contract_violation",
                extra={"page": self.cursor.page, "limit": limit, "size": size},
            )
            raise ProducerContractViolation(size, limit)
        elif size < limit:
            self.exceeded = True
        elif batch.total and self.count >= batch.total:
            self.exceeded = True

        self.previous = batch.payload
        return True

    def complete(self) -> None:
        logger.debug("walk_complete", extra={"times": self.times, "count": self.count})


class BasePager(Generic[M]):
    """Configuration shared by the synchronous and asynchronous pagers."""

    default_times_limit = DEFAULT_TIMES_LIMIT

    def __init__(
        self,
        batch_size: int,
        producer: Any,
        *,
        cursor: Cursor | None = None,
        times_limit: int | None = None,
    ) -> None:
        """
        Initialize a pager.

        :param batch_size: The number of elements requested per fetch.
        :param producer: Supplies one batch per call. A batch holding fewer elements than
            `batch_size` ends the walk, a batch holding more is a producer bug.
        :param cursor: An externally owned cursor to walk instead of a fresh one per walk.
            It is reset to its first page when a walk starts and advanced in place, so it
            must not be changed by anyone else while a walk is in progress. Its limit must
            equal `batch_size`.
        :param times_limit: The maximum number of fetches, guarding against producers
            which never signal exhaustion. Defaults to `default_times_limit`.
        """
        if batch_size < 1:
            msg = f"batch_size must be >= 1, got {batch_size}"
            raise ValueError(msg)
        self._batch_size = batch_size
        self._producer = producer
        if cursor is not None and cursor.limit != batch_size:
            msg = f"batch_size {batch_size} does not match the cursor limit {cursor.limit}"
            raise ValueError(msg)
        self._cursor = cursor
        self._times_limit = self.default_times_limit
        if times_limit is not None:
            self.set_times_limit(times_limit)

    @classmethod
    def over(cls: type[P], cursor: Cursor, producer: Any, *, times_limit: int | None = None) -> P:
        """Initialize a pager walking `cursor`, with the cursor limit as batch size."""
        return cls(cursor.limit, producer, cursor=cursor, times_limit=times_limit)

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def times_limit(self) -> int:
        return self._times_limit

    def set_times_limit(self: P, times_limit: int) -> P:
        """
        Override the maximum number of fetches per walk. Returns the pager for chaining.

        :param times_limit: The new limit, the walk fails once it needs more than
            `times_limit + 1` fetches.
        """
        if times_limit < 0:
            msg = f"times_limit must be >= 0, got {times_limit}"
            raise ValueError(msg)
        self._times_limit = times_limit
        return self

    def _new_walk(self) -> _Walk[M]:
        cursor = self._cursor if self._cursor is not None else Cursor.of(1, self._batch_size)
        return _Walk(cursor, self._times_limit)


class ModelPager(BasePager[M]):
    """
    Walk a `PageProducer` and iterate over the payload of every batch it returns.

    Each call to `iter()` starts a new walk from the first page. Nothing is fetched
    before the consumer asks for the next payload.

    An unpaged cursor (`ALL`, or a cursor without a page) makes the walk a single fetch
    of everything: its limit is not enforced, so a batch larger than the limit is yielded
    as is instead of raising `ProducerContractViolation`.
    """

    _producer: PageProducer[M]

    @classmethod
    def with_cursor(
        cls,
        cursor: Cursor,
        fetch: Callable[[M | None], M],
        size: Callable[[M], int],
        *,
        times_limit: int | None = None,
    ) -> "ModelPager[M]":
        """
        Build a pager over a fetch function which holds on to `cursor` itself.

        :param cursor: The cursor `fetch` reads its page from, advanced by the pager.
        :param fetch: Called with the previous payload (None on the first fetch).
        :param size: Returns the number of elements in a payload.
        """
        producer = DelegatedProducer.of_model(lambda _cursor, previous: fetch(previous), size)
        return cls.over(cursor, producer, times_limit=times_limit)

    def __iter__(self) -> Iterator[M]:
        walk: _Walk[M] = self._new_walk()
        while walk.next_fetch():
            batch = self._producer(walk.cursor, walk.previous)
            if walk.accept(batch):
                yield batch.payload
        walk.complete()


class AsyncModelPager(BasePager[M]):
    """
    Walk an `AsyncPageProducer` and asynchronously iterate over the payload of every batch.

    Exactly one producer call is awaited at a time; nothing is prefetched.
    """

    _producer: AsyncPageProducer[M]

    @classmethod
    def with_cursor(
        cls,
        cursor: Cursor,
        fetch: Callable[[M | None], Any],
        size: Callable[[M], int],
        *,
        times_limit: int | None = None,
    ) -> "AsyncModelPager[M]":
        """Build a pager over a coroutine function which holds on to `cursor` itself."""
        producer = AsyncDelegatedProducer.of_model(
            lambda _cursor, previous: fetch(previous), size
        )
        return cls.over(cursor, producer, times_limit=times_limit)

    async def __aiter__(self) -> AsyncIterator[M]:
        walk: _Walk[M] = self._new_walk()
        while walk.next_fetch():
            batch = await self._producer(walk.cursor, walk.previous)
            if walk.accept(batch):
                yield batch.payload
        walk.complete()
