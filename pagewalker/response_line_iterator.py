"""httpx response iterators for newline delimited JSON."""

import collections.abc
import json
from typing import Any

import httpx


async def aiter_lines(response: httpx.Response) -> collections.abc.AsyncIterator[str]:
    """
    Iterate through the lines of a streamed response.

    Only "\\n" separates lines, as required by ndjson; other characters which `str.splitlines`
    would treat as line breaks may legitimately appear inside a JSON string.
    """
    decoder = NdjsonLineDecoder()
    async for text in response.aiter_text():
        for line in decoder.decode(text):
            yield line
    for line in decoder.flush():
        yield line


async def aiter_ndjson(response: httpx.Response) -> collections.abc.AsyncIterator[Any]:
    """
    Iterate through the JSON documents of a streamed ndjson response, skipping blank lines.

    :raises json.JSONDecodeError: if a non-blank line is not valid JSON.
    """
    async for line in aiter_lines(response):
        if not line.strip():
            continue
        yield json.loads(line)


class NdjsonLineDecoder:
    """Incrementally split text arriving in arbitrary chunks into "\\n" terminated lines."""

    def __init__(self) -> None:
        self.buffer: list[str] = []

    def decode(self, text: str) -> list[str]:
        """Return the lines completed by `text`, keeping any unterminated rest for later."""
        *lines, rest = text.split("\n")
        if not lines:
            # No new lines, buffer the input and continue.
            if rest:
                self.buffer.append(rest)
            return []

        if self.buffer:
            lines[0] = "".join(self.buffer) + lines[0]
        self.buffer = [rest] if rest else []
        return [line.removesuffix("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return the final unterminated line, if any."""
        if not self.buffer:
            return []
        line = "".join(self.buffer)
        self.buffer = []
        return [line.removesuffix("\r")]
