"""Server-sent-event decoding for streaming chat completions.

Independent of the HTTP layer: feed it text chunks of any size and it
returns the ``choices[0].delta.content`` fragments of every complete
``data:`` line, in order.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator

_logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta(payload: Any) -> str | None:
    """Return ``choices[0].delta.content`` if it is a non-empty string."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


class SSEDecoder:
    """Incremental line buffer for an OpenAI-style SSE body.

    Lines are only processed once their terminating newline has arrived, so
    a frame split across network reads is decoded once it is whole.  After
    ``data: [DONE]`` the decoder ignores all further input.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self.done = False
        self.skipped = 0

    def feed(self, chunk: str) -> list[str]:
        """Append *chunk* and return the deltas of all completed lines."""
        if self.done:
            return []
        self._buffer += chunk
        deltas: list[str] = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            delta = self._process_line(line.strip())
            if self.done:
                self._buffer = ""
                break
            if delta is not None:
                deltas.append(delta)
        return deltas

    def finish(self) -> None:
        """Mark end of input.  An unterminated trailing line is dropped."""
        if self._buffer.strip() and not self.done:
            _logger.debug("Discarding unterminated SSE line: %.200s", self._buffer)
        self._buffer = ""

    def _process_line(self, line: str) -> str | None:
        if not line or not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            self.done = True
            return None
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            self.skipped += 1
            _logger.debug("Skipping malformed SSE frame (%s): %.200s", e, data)
            return None
        return extract_delta(payload)


async def iter_deltas(
    chunks: AsyncIterable[bytes | str],
    decoder: SSEDecoder | None = None,
) -> AsyncIterator[str]:
    """Decode an async stream of raw body chunks into text deltas.

    Bytes are decoded as UTF-8 incrementally, so a multi-byte character
    split across reads survives.  The sequence ends at ``[DONE]`` or when
    *chunks* is exhausted; a missing sentinel is not an error.
    """
    decoder = decoder or SSEDecoder()
    utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
    async for chunk in chunks:
        text = utf8.decode(chunk) if isinstance(chunk, bytes) else chunk
        for delta in decoder.feed(text):
            yield delta
        if decoder.done:
            return
    tail = utf8.decode(b"", final=True)
    for delta in decoder.feed(tail):
        yield delta
    if not decoder.done:
        _logger.debug("SSE stream closed without %s", DONE_SENTINEL)
    decoder.finish()
