"""Connection-level retry with linear backoff.

Only transport failures are retried here.  HTTP status handling belongs to
the caller: a response, whatever its status, ends the retry loop.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import httpx

from open_translator.errors import ProviderConnectionError

_logger = logging.getLogger(__name__)

T = TypeVar("T")

# Retry configuration
_MAX_ATTEMPTS = 3
_BACKOFF_BASE = 1.0  # seconds -- linear: 1, 2, 3

# TLS handshake failures, resets and abrupt closes surface as NetworkError
# subclasses; a server hanging up mid-response is a RemoteProtocolError.
_RETRYABLE = (
    httpx.NetworkError,
    httpx.TimeoutException,
    httpx.RemoteProtocolError,
)


def is_retryable(exc: BaseException) -> bool:
    """True for transient transport failures worth another attempt."""
    return isinstance(exc, _RETRYABLE)


@dataclass
class RetryState:
    """Per-call bookkeeping.  Never shared between calls."""

    attempt: int = 0
    last_error: BaseException | None = None
    delay: float = 0.0


OnRetry = Callable[[RetryState], Awaitable[None]]


@dataclass
class ConnectionRetry:
    """Run an operation with bounded retry on retryable transport errors.

    ``operation`` is called afresh on every attempt so that each attempt
    builds its own request; a request whose body was consumed by a failed
    attempt is never resent.
    """

    max_attempts: int = _MAX_ATTEMPTS
    backoff_base: float = _BACKOFF_BASE
    label: str = "request"

    async def attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        on_retry: OnRetry | None = None,
    ) -> T:
        state = RetryState()
        while True:
            state.attempt += 1
            try:
                return await operation()
            except httpx.TransportError as e:
                state.last_error = e
                if not is_retryable(e):
                    raise ProviderConnectionError(
                        f"{self.label} failed", cause=e, attempts=state.attempt,
                    ) from e
                _logger.warning(
                    "%s error (attempt %d/%d): %r",
                    self.label, state.attempt, self.max_attempts, e,
                )
                if state.attempt >= self.max_attempts:
                    raise ProviderConnectionError(
                        f"Connection failed for {self.label}",
                        cause=e,
                        attempts=state.attempt,
                    ) from e
                state.delay = self.backoff_base * state.attempt
                if on_retry is not None:
                    await on_retry(state)
                # Cancelling the calling task interrupts the sleep immediately.
                await asyncio.sleep(state.delay)
