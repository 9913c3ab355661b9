"""Api handlers definition."""

import json
from collections.abc import AsyncGenerator, Generator, Iterable, Mapping
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import StreamingResponse

from .constants import (
    AFTER_PARAM,
    DEFAULT_LIMIT,
    LIMIT_PARAM,
    NDJSON_MEDIA_TYPE,
    PAGE_PARAM,
    TOTAL_COUNT_HEADER,
)
from .cursor import Cursor
from .page_reader import PageReader


def _positive_int_param(query_params: Mapping[str, str], name: str, default: int) -> int:
    raw_value = query_params.get(name)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid parameter {name}"
        ) from err
    if value < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Parameter {name} must be at least 1",
        )
    return value


class PageFastApiHandler:
    """Handler serving the pages of a PageReader using fastapi."""

    def __init__(
        self,
        page_reader: PageReader,
        max_limit: int | None = None,
    ) -> None:
        """
        Initialize the PageFastApiHandler with a PageReader.

        :param page_reader: The source of the pages.
        :param max_limit: The largest page size clients may request, unbounded when None.
        """
        self.page_reader = page_reader
        self.max_limit = max_limit

    def validate(self, request: Request) -> dict[str, Any]:
        """Validate all required parameters and its format.
        Return the expected parameter structure for next step processing.
        """
        query_params = request.query_params
        page = _positive_int_param(query_params, PAGE_PARAM, 1)
        limit = _positive_int_param(query_params, LIMIT_PARAM, DEFAULT_LIMIT)
        if self.max_limit is not None and limit > self.max_limit:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Parameter limit must be at most {self.max_limit}",
            )

        return {
            "cursor": Cursor.of(page, limit),
            "after": query_params.get(AFTER_PARAM) or None,
        }

    async def generate_response_format(
        self,
        data_gen: Iterable[Any] | AsyncGenerator[Any, Any],
    ) -> AsyncGenerator[bytes, Any]:
        """Generate the response format for the client."""
        if isinstance(data_gen, AsyncGenerator):
            async for data in data_gen:
                yield f"{json.dumps(data)}\n".encode()
        else:
            for data in data_gen:
                yield f"{json.dumps(data)}\n".encode()

    def handle(self, request: Request) -> StreamingResponse:
        """Handle the request after validation.
        Return the page as newline delimited JSON to the client.
        """
        validated_data = self.validate(request)
        cursor: Cursor = validated_data["cursor"]
        after: str | None = validated_data["after"]

        total = self.page_reader.count()
        headers = {} if total is None else {TOTAL_COUNT_HEADER: str(total)}

        data_gen: Generator[Any, None, None] | AsyncGenerator[Any, None] | tuple[()]
        if total is not None and after is None and cursor.is_exceeded(total):
            data_gen = ()
        else:
            data_gen = self.page_reader.read_page(cursor, after)

        response_gen = self.generate_response_format(data_gen)
        return StreamingResponse(response_gen, media_type=NDJSON_MEDIA_TYPE, headers=headers)
