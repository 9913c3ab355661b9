"""
pagewalker module.

The HTTP page fetcher and the FastAPI handler live in `pagewalker.http_producer` and
`pagewalker.api_handler` and need the `http` extra.
"""

from .batch import Batch
from .constants import (
    DEFAULT_ELEMENT_TIMES_LIMIT,
    DEFAULT_LIMIT,
    DEFAULT_TIMES_LIMIT,
    TOTAL_COUNT_HEADER,
)
from .cursor import ALL, Cursor, CursorKind
from .element_pager import AsyncElementPager, ElementPager
from .errors import (
    IllegalPaginationState,
    IterationLimitExceeded,
    PaginationError,
    ProducerContractViolation,
)
from .page_reader import PageReader
from .pager import AsyncModelPager, ModelPager
from .producer import (
    AsyncDelegatedProducer,
    AsyncPageProducer,
    BatchMapper,
    DataProducer,
    DelegatedProducer,
    PageProducer,
    ignore_previous,
    last_element,
    ordered,
)

__all__ = [
    "ALL",
    "DEFAULT_ELEMENT_TIMES_LIMIT",
    "DEFAULT_LIMIT",
    "DEFAULT_TIMES_LIMIT",
    "TOTAL_COUNT_HEADER",
    "AsyncDelegatedProducer",
    "AsyncElementPager",
    "AsyncModelPager",
    "AsyncPageProducer",
    "Batch",
    "BatchMapper",
    "Cursor",
    "CursorKind",
    "DataProducer",
    "DelegatedProducer",
    "ElementPager",
    "IllegalPaginationState",
    "IterationLimitExceeded",
    "ModelPager",
    "PageProducer",
    "PageReader",
    "PaginationError",
    "ProducerContractViolation",
    "ignore_previous",
    "last_element",
    "ordered",
]
