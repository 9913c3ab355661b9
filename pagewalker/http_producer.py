"""Module containing an async producer which fetches pages from an HTTP endpoint serving ndjson."""

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx

from .batch import Batch
from .constants import AFTER_PARAM, LIMIT_PARAM, PAGE_PARAM, TOTAL_COUNT_HEADER
from .cursor import Cursor
from .response_line_iterator import aiter_ndjson

logger = logging.getLogger(__name__)


class HttpPageFetcher:
    """
    Fetch the page of a cursor from an HTTP endpoint.

    The endpoint receives `page` and `limit` query parameters and responds with one JSON
    document per line, optionally reporting the total number of elements in the
    `X-Total-Count` header. Instances are `AsyncPageProducer`s, so they plug straight into
    `AsyncModelPager` and `AsyncElementPager`.
    """

    def __init__(
        self,
        url: str,
        http_client: httpx.AsyncClient,
        *,
        key: Callable[[Any], str | int] | None = None,
        params: Mapping[str, str | int] | None = None,
    ) -> None:
        """
        Initializes a new instance of the HttpPageFetcher class.

        :param url: The URL of the page endpoint.
        :param http_client: A httpx AsyncClient under which to make the HTTP requests.
            This allows one time setup of authentication etc. on the session,
            and increases performance due to connection pooling.
        :param key: Switches to keyset pagination: instead of a page number, the key of the
            last element of the previous batch is sent in the `after` query parameter.
        :param params: Extra query parameters sent with every request.
        """
        self.url = url
        self._http_client = http_client
        self._key = key
        self._params = dict(params or {})

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Return the http_client being used by this fetcher."""
        return self._http_client

    async def __call__(self, cursor: Cursor, previous: Sequence[Any] | None) -> Batch[list[Any]]:
        """
        Fetch the elements of one page.

        :param cursor: The page and limit to request.
        :param previous: The elements of the previous page, used in keyset mode.
        :raises httpx.RequestError: if unable to call the endpoint successfully.
        :raises httpx.HTTPStatusError: if response status code does not indicate success.
        :raises json.JSONDecodeError: if a line from the response cannot be decoded into JSON.
        :raises ValueError: if the total count header is not a non-negative integer.
        """
        params = self._build_request_params(cursor, previous)
        logger.debug("page_request", extra={"url": self.url, "params": params})

        async with self._http_client.stream("GET", self.url, params=params) as res:
            res.raise_for_status()
            elements = [element async for element in aiter_ndjson(res)]
            total = self._parse_total(res)

        return Batch(elements, len(elements), total)

    def _build_request_params(
        self, cursor: Cursor, previous: Sequence[Any] | None
    ) -> dict[str, str | int]:
        """
        Build the query parameters for the page of `cursor`.

        :param cursor: The page and limit to request.
        :param previous: The elements of the previous page.
        :return: the query parameters
        """
        params: dict[str, str | int] = dict(self._params)
        params[LIMIT_PARAM] = cursor.limit

        if self._key is not None:
            if previous:
                params[AFTER_PARAM] = self._key(previous[-1])
        elif cursor.page is not None:
            params[PAGE_PARAM] = cursor.page

        return params

    def _parse_total(self, res: httpx.Response) -> int | None:
        """
        Parse the total count header of the response, if present.

        :raises ValueError: if the header is not a non-negative integer.
        """
        raw_total = res.headers.get(TOTAL_COUNT_HEADER)
        if raw_total is None:
            return None
        try:
            total = int(raw_total)
        except ValueError as error:
            msg = f"invalid {TOTAL_COUNT_HEADER} header: {raw_total!r}"
            raise ValueError(msg) from error
        if total < 0:
            msg = f"invalid {TOTAL_COUNT_HEADER} header: {raw_total!r}"
            raise ValueError(msg)
        return total
