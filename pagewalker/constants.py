"""Module containing defaults and wire names shared by the pagers, the HTTP fetcher and the handler."""

DEFAULT_LIMIT = 20
"""DEFAULT_LIMIT is the page size used when a cursor or request does not specify one."""

DEFAULT_TIMES_LIMIT = 10_000
"""DEFAULT_TIMES_LIMIT caps the number of batches a model pager fetches in one walk."""

DEFAULT_ELEMENT_TIMES_LIMIT = 100_000
"""
DEFAULT_ELEMENT_TIMES_LIMIT caps the number of batches an element pager fetches in one walk.
It is deliberately kept apart from DEFAULT_TIMES_LIMIT.
"""

PAGE_PARAM = "page"
LIMIT_PARAM = "limit"
AFTER_PARAM = "after"

TOTAL_COUNT_HEADER = "X-Total-Count"
"""Response header carrying the total number of elements across all pages, when known."""

NDJSON_MEDIA_TYPE = "application/x-ndjson"
