"""Cancellable handle around one streaming completion call."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from open_translator.types import CallState

_logger = logging.getLogger(__name__)

_EXHAUSTED = object()


class CompletionStream:
    """Async iterator of text deltas with an explicit ``cancel()``.

    Iteration ends normally when the call is done or cancelled (check
    :attr:`state` to tell them apart) and raises the engine's typed error
    when the call fails.  After cancellation no further deltas are emitted
    and the underlying response is closed.

    Usage::

        stream = engine.stream_completion(system, user, model, provider)
        async for delta in stream:
            print(delta, end="")
        if stream.state is CallState.CANCELLED:
            ...
    """

    def __init__(
        self,
        body: Callable[[CompletionStream], AsyncIterator[str]],
        *,
        on_cancel: Callable[[CompletionStream], Awaitable[None]] | None = None,
    ) -> None:
        self.state = CallState.BUILDING
        self.requests_sent = 0
        self.error: BaseException | None = None
        self._parts: list[str] = []
        self._cancel_event = asyncio.Event()
        self._on_cancel = on_cancel
        self._agen = body(self)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        """Concatenation of every delta emitted so far."""
        return "".join(self._parts)

    @property
    def cancelled(self) -> bool:
        return self.state is CallState.CANCELLED

    def cancel(self) -> None:
        """Request cancellation.  Safe to call at any time, more than once."""
        if not self.state.is_terminal:
            self._cancel_event.set()

    async def collect(self) -> str:
        """Consume the stream and return the full text."""
        async for _ in self:
            pass
        return self.text

    async def aclose(self) -> None:
        """Cancel if still running and release the response."""
        self.cancel()
        if self._cancel_event.is_set():
            await self._finish_cancelled()

    # ------------------------------------------------------------------
    # Iterator protocol
    # ------------------------------------------------------------------

    def __aiter__(self) -> CompletionStream:
        return self

    async def __anext__(self) -> str:
        if self.state.is_terminal:
            raise StopAsyncIteration
        if self._cancel_event.is_set():
            await self._finish_cancelled()
            raise StopAsyncIteration

        step = asyncio.ensure_future(self._next_delta())
        waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({step, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The consuming task itself was cancelled.
            waiter.cancel()
            await self._abort(step)
            await self._finish_cancelled()
            raise

        if step.done():
            waiter.cancel()
            try:
                delta = step.result()
            except BaseException as e:
                self.error = e
                if not self.state.is_terminal:
                    self.state = CallState.FAILED
                raise
            if delta is _EXHAUSTED:
                raise StopAsyncIteration
            self._parts.append(delta)
            return delta

        await self._abort(step)
        await self._finish_cancelled()
        raise StopAsyncIteration

    async def __aenter__(self) -> CompletionStream:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _next_delta(self) -> Any:
        try:
            return await self._agen.__anext__()
        except StopAsyncIteration:
            return _EXHAUSTED

    @staticmethod
    async def _abort(step: asyncio.Future) -> None:
        step.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await step

    async def _finish_cancelled(self) -> None:
        if self.state.is_terminal:
            return
        self.state = CallState.CANCELLED
        await self._agen.aclose()
        _logger.info("Completion stream cancelled after %d chars", len(self.text))
        if self._on_cancel is not None:
            await self._on_cancel(self)
