import logging
import math
from typing import Any

import pytest
from pagewalker import (
    ALL,
    DEFAULT_TIMES_LIMIT,
    Batch,
    Cursor,
    IterationLimitExceeded,
    ModelPager,
    ProducerContractViolation,
)


class SliceProducer:
    """Serve `data` page by page, recording the page and limit of every call."""

    def __init__(self, data: list[int], total: int | None = None) -> None:
        self.data = data
        self.total = total
        self.calls: list[tuple[int | None, int]] = []

    def __call__(self, cursor: Cursor, previous: list[int] | None) -> Batch[list[int]]:
        self.calls.append((cursor.page, cursor.limit))
        start = cursor.offset or 0
        page = self.data[start : start + cursor.limit]
        return Batch(page, len(page), self.total)


class FixedSizesProducer:
    """Return batches of the given sizes in turn, full batches once the sizes run out."""

    def __init__(self, sizes: list[int]) -> None:
        self.sizes = sizes
        self.calls = 0

    def __call__(self, cursor: Cursor, previous: Any) -> Batch[list[int]]:
        size = self.sizes[self.calls] if self.calls < len(self.sizes) else cursor.limit
        self.calls += 1
        return Batch(list(range(size)), size)


def test_walk_yields_every_batch_in_order() -> None:
    """Test that 1..100 in batches of 10 yields ten full batches in order."""
    # arrange
    data = list(range(1, 101))
    producer = SliceProducer(data)

    # act
    batches = list(ModelPager(10, producer))

    # assert
    assert len(batches) == 10
    assert [element for batch in batches for element in batch] == data
    # ten data bearing fetches plus the empty one which proves exhaustion
    assert producer.calls[:10] == [(page, 10) for page in range(1, 11)]
    assert producer.calls[10:] == [(11, 10)]


@pytest.mark.parametrize("count", [0, 1, 7, 10, 11, 99, 100])
@pytest.mark.parametrize("batch_size", [1, 3, 10, 150])
def test_walk_is_complete_and_fetches_each_page_once(count: int, batch_size: int) -> None:
    """
    Test that flattening the walk yields the whole source, and that the producer is called
    once per page plus once more only when the last page is full.
    """
    # arrange
    data = list(range(count))
    producer = SliceProducer(data)

    # act
    result = [element for batch in ModelPager(batch_size, producer) for element in batch]

    # assert
    assert result == data
    expected_calls = count // batch_size + 1 if count % batch_size == 0 else math.ceil(
        count / batch_size
    )
    assert len(producer.calls) == expected_calls


def test_empty_source_is_fetched_once() -> None:
    """Test that an empty source results in one fetch and no batches."""
    # arrange
    producer = SliceProducer([])

    # act
    batches = list(ModelPager(5, producer))

    # assert
    assert batches == []
    assert producer.calls == [(1, 5)]


def test_short_batch_ends_the_walk_without_another_fetch() -> None:
    """Test that a batch smaller than the batch size is the last one fetched."""
    # arrange
    producer = FixedSizesProducer([4, 4, 2])

    # act
    batches = list(ModelPager(4, producer))

    # assert
    assert [len(batch) for batch in batches] == [4, 4, 2]
    assert producer.calls == 3


def test_oversized_batch_raises_producer_contract_violation() -> None:
    """Test that a batch larger than the batch size fails the walk on the first fetch."""
    # arrange
    producer = FixedSizesProducer([4])
    walk = iter(ModelPager(3, producer))

    # act & assert
    with pytest.raises(ProducerContractViolation) as excinfo:
        next(walk)

    assert excinfo.value.size == 4
    assert excinfo.value.limit == 3
    assert producer.calls == 1

    # the walk is over, nothing else is fetched
    with pytest.raises(StopIteration):
        next(walk)
    assert producer.calls == 1


def test_batches_before_a_contract_violation_stay_consumed() -> None:
    """Test that payloads yielded before a violation are kept by the consumer."""
    # arrange
    producer = FixedSizesProducer([3, 3, 5])
    received = []

    # act & assert
    with pytest.raises(ProducerContractViolation):
        for batch in ModelPager(3, producer):
            received.append(batch)

    assert len(received) == 2
    assert producer.calls == 3


def test_never_ending_producer_raises_iteration_limit_exceeded() -> None:
    """Test that a producer which always fills its batch fails after times_limit + 1 fetches."""
    # arrange
    producer = FixedSizesProducer([])
    pager = ModelPager(2, producer).set_times_limit(5)

    # act & assert
    with pytest.raises(IterationLimitExceeded) as excinfo:
        list(pager)

    assert excinfo.value.times_limit == 5
    assert producer.calls == 6


def test_reported_total_stops_the_walk_after_a_full_batch() -> None:
    """Test that the walk ends once the reported total is reached, saving the empty fetch."""
    # arrange
    producer = SliceProducer(list(range(30)), total=30)

    # act
    batches = list(ModelPager(10, producer))

    # assert
    assert len(batches) == 3
    assert len(producer.calls) == 3


def test_reported_total_below_available_data_wins() -> None:
    """Test that the walk trusts the reported total even when the source holds more."""
    # arrange
    producer = SliceProducer(list(range(30)), total=20)

    # act
    batches = list(ModelPager(10, producer))

    # assert
    assert batches == [list(range(10)), list(range(10, 20))]
    assert len(producer.calls) == 2


def test_zero_total_is_treated_as_unknown() -> None:
    """Test that a total of zero does not end the walk."""
    # arrange
    producer = SliceProducer(list(range(20)), total=0)

    # act
    batches = list(ModelPager(10, producer))

    # assert
    assert len(batches) == 2
    assert len(producer.calls) == 3


def test_nothing_is_fetched_until_requested() -> None:
    """Test that the walk fetches one batch per request and nothing up front."""
    # arrange
    producer = SliceProducer(list(range(30)))
    walk = iter(ModelPager(10, producer))

    # assert
    assert producer.calls == []

    # act
    next(walk)

    # assert
    assert producer.calls == [(1, 10)]

    # act
    next(walk)

    # assert
    assert producer.calls == [(1, 10), (2, 10)]


def test_every_iteration_starts_a_new_walk() -> None:
    """Test that iterating a pager twice walks the source twice from the first page."""
    # arrange
    producer = SliceProducer(list(range(5)))
    pager = ModelPager(3, producer)

    # act
    first = list(pager)
    second = list(pager)

    # assert
    assert first == second == [[0, 1, 2], [3, 4]]
    assert producer.calls == [(1, 3), (2, 3), (1, 3), (2, 3)]


def test_previous_payload_is_passed_to_the_producer() -> None:
    """Test that the producer receives the payload of the previous batch."""
    # arrange
    previous_payloads = []

    def producer(cursor: Cursor, previous: list[int] | None) -> Batch[list[int]]:
        previous_payloads.append(previous)
        page = [cursor.require_page()] * (2 if cursor.page < 3 else 1)
        return Batch(page, len(page))

    # act
    list(ModelPager(2, producer))

    # assert
    assert previous_payloads == [None, [1, 1], [2, 2]]


def test_producer_errors_propagate_unchanged() -> None:
    """Test that an exception raised by the producer reaches the consumer as is."""

    # arrange
    def producer(cursor: Cursor, previous: Any) -> Batch[list[int]]:
        raise ConnectionError("source unavailable")

    # act & assert
    with pytest.raises(ConnectionError, match="source unavailable"):
        list(ModelPager(2, producer))


def test_external_cursor_is_reset_and_advanced_in_place() -> None:
    """Test that a pager over an external cursor starts at its first page and moves it along."""
    # arrange
    cursor = Cursor.of(4, 10)
    producer = SliceProducer(list(range(25)))

    # act
    batches = list(ModelPager.over(cursor, producer))

    # assert
    assert len(batches) == 3
    assert producer.calls == [(1, 10), (2, 10), (3, 10)]
    assert cursor.page == 3


def test_cursor_keyword_walks_the_given_cursor() -> None:
    """Test that a cursor passed to the constructor is walked in place."""
    # arrange
    cursor = Cursor.of(2, 5)
    producer = SliceProducer(list(range(12)))

    # act
    batches = list(ModelPager(5, producer, cursor=cursor))

    # assert
    assert batches == [list(range(5)), list(range(5, 10)), [10, 11]]
    assert producer.calls == [(1, 5), (2, 5), (3, 5)]
    assert cursor.page == 3


def test_cursor_keyword_must_match_the_batch_size() -> None:
    """Test that a cursor whose limit differs from the batch size is rejected."""
    with pytest.raises(ValueError, match="batch_size 4 does not match the cursor limit 5"):
        ModelPager(4, SliceProducer([]), cursor=Cursor.of(1, 5))


def test_external_cursor_rests_on_the_last_page_fetched() -> None:
    """Test that the cursor is not advanced past the page which ended the walk."""
    # arrange
    cursor = Cursor.of(1, 2)
    producer = SliceProducer(list(range(5)))

    # act
    list(ModelPager.over(cursor, producer))

    # assert
    assert producer.calls == [(1, 2), (2, 2), (3, 2)]
    assert str(cursor) == "page 3 (limit 2)"


def test_all_cursor_fetches_once_without_limit() -> None:
    """Test that a walk over the ALL cursor is a single unbounded fetch."""
    # arrange
    producer = SliceProducer(list(range(50)))

    def fetch_everything(cursor: Cursor, previous: Any) -> Batch[list[int]]:
        producer.calls.append((cursor.page, cursor.limit))
        return Batch(producer.data, len(producer.data))

    # act
    batches = list(ModelPager.over(ALL, fetch_everything))

    # assert
    assert batches == [list(range(50))]
    assert producer.calls == [(None, ALL.limit)]


def test_unpaged_cursor_does_not_enforce_its_limit() -> None:
    """Test that an unpaged cursor yields a batch larger than its limit in one fetch."""
    # arrange
    producer = SliceProducer(list(range(50)))

    def fetch_everything(cursor: Cursor, previous: Any) -> Batch[list[int]]:
        producer.calls.append((cursor.page, cursor.limit))
        return Batch(producer.data, len(producer.data))

    # act
    batches = list(ModelPager.over(Cursor(None, 3), fetch_everything))

    # assert
    assert batches == [list(range(50))]
    assert producer.calls == [(None, 3)]


def test_unpaged_cursor_with_empty_result_yields_nothing() -> None:
    """Test that an empty unbounded fetch ends the walk without yielding."""
    # act
    batches = list(ModelPager.over(Cursor(limit=5), lambda cursor, previous: Batch([], 0)))

    # assert
    assert batches == []


def test_with_cursor_walks_a_draining_source_with_a_top_cursor() -> None:
    """Test that a TOP cursor re-reads the first page until the source is drained."""
    # arrange
    queue = list(range(1, 8))
    cursor = Cursor.top(3)

    def take(previous: list[int] | None) -> list[int]:
        taken = queue[: cursor.limit]
        del queue[: cursor.limit]
        return taken

    # act
    batches = list(ModelPager.with_cursor(cursor, take, len))

    # assert
    assert batches == [[1, 2, 3], [4, 5, 6], [7]]
    assert cursor.page == 1
    assert queue == []


def test_set_times_limit_returns_the_pager() -> None:
    """Test that set_times_limit can be chained and that the default is 10,000."""
    # arrange
    pager = ModelPager(5, SliceProducer([]))

    # assert
    assert pager.times_limit == DEFAULT_TIMES_LIMIT == 10_000
    assert pager.set_times_limit(3) is pager
    assert pager.times_limit == 3
    assert pager.batch_size == 5


def test_invalid_configuration_raises() -> None:
    """Test that batch size and times limit are validated."""
    with pytest.raises(ValueError, match="batch_size must be >= 1"):
        ModelPager(0, SliceProducer([]))
    with pytest.raises(ValueError, match="times_limit must be >= 0"):
        ModelPager(1, SliceProducer([]), times_limit=-1)


def test_contract_violation_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a contract violation is logged before it is raised."""
    # arrange
    caplog.set_level(logging.DEBUG, logger="pagewalker.pager")

    # act
    with pytest.raises(ProducerContractViolation):
        list(ModelPager(1, FixedSizesProducer([2])))

    # assert
    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["page_fetched", "producer_contract_violation"]
    assert caplog.records[-1].levelno == logging.ERROR
