"""
This module defines the errors raised while walking a paginated source.

All of them derive from `PaginationError`. `ProducerContractViolation` and
`IterationLimitExceeded` are fatal for the walk they occur in: the pager never retries,
and elements yielded before the error remain valid.
"""


class PaginationError(Exception):
    """Base class for all pagewalker errors."""


class IllegalPaginationState(PaginationError):
    """
    IllegalPaginationState is raised when an operation is invalid for the cursor's current state
    or kind, e.g. advancing an unpaged cursor or mutating the `ALL` cursor.
    """


class ProducerContractViolation(PaginationError):
    """
    ProducerContractViolation is raised when a producer returns a batch holding more elements
    than the cursor's limit. It signals a bug in the producer rather than a data condition.
    """

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"producer returned {size} elements, more than the batch size {limit}")


class IterationLimitExceeded(PaginationError):
    """
    IterationLimitExceeded is raised when a walk needs more fetches than its times limit allows,
    which usually means the producer never signals exhaustion.
    """

    def __init__(self, times_limit: int) -> None:
        self.times_limit = times_limit
        super().__init__(
            f"pagination fetched {times_limit} batches and exceeded its times limit; "
            "check the producer for a missing end condition or raise the limit"
        )


ErrUnpaged = IllegalPaginationState("cursor is unpaged")
"""ErrUnpaged is raised when a page number is required from an unpaged cursor."""
