"""Module to define the batch dataclass."""

from dataclasses import dataclass
from typing import Generic, TypeVar

M = TypeVar("M")


@dataclass(frozen=True)
class Batch(Generic[M]):
    """
    One fetch worth of data from a producer.

    :param payload: The data fetched, of whatever shape the pager walks over
    :param size: The number of elements `payload` represents
    :param total: The producer's best known number of elements across the whole walk,
        None or 0 when unknown
    """

    payload: M
    size: int
    total: int | None = None

    def __post_init__(self) -> None:
        if self.size < 0:
            msg = f"batch size must be >= 0, got {self.size}"
            raise ValueError(msg)
        if self.total is not None and self.total < 0:
            msg = f"batch total must be >= 0, got {self.total}"
            raise ValueError(msg)
