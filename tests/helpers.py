"""SSE and MockTransport helpers shared by the test modules."""

from __future__ import annotations

import json
from typing import Any, AsyncIterator

import httpx


def sse_frame(content: str) -> str:
    """One ``data:`` line carrying a content delta."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def sse_body(*contents: str, done: bool = True) -> bytes:
    body = "".join(sse_frame(c) for c in contents)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


async def chunked(*chunks: bytes | str) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


def sse_response(*contents: str, done: bool = True) -> httpx.Response:
    return httpx.Response(
        200,
        content=sse_body(*contents, done=done),
        headers={"Content-Type": "text/event-stream"},
    )


def request_json(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


class Recorder:
    """MockTransport handler that records requests and replays a script.

    Each script item is an ``httpx.Response``, an exception to raise, or a
    callable taking the request.  The last item repeats once the script is
    used up, so repeat only exceptions or callables.
    """

    def __init__(self, *script: Any) -> None:
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        return item

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [request_json(r) for r in self.requests]
