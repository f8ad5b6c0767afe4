"""Typed failures surfaced by the completion engine.

Both concrete errors are terminal for the call that raised them.  A
malformed SSE frame is never raised; the decoder skips it.
"""

from __future__ import annotations

import json


class EngineError(Exception):
    """Base class for engine failures."""


class ProviderConnectionError(EngineError):
    """Transport-level failure, raised after connection retries are exhausted.

    Attributes:
        cause: The last underlying exception.
        attempts: How many connection attempts were made.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.cause = cause
        self.attempts = attempts

    def __str__(self) -> str:
        base = super().__str__()
        if self.cause is not None:
            return f"{base} (after {self.attempts} attempt(s)): {self.cause}"
        return base


class ProviderConfigError(EngineError):
    """Provider settings that cannot be put on the wire (e.g. a non-ASCII key)."""


class ProviderAPIError(EngineError):
    """Non-success HTTP response from the provider."""

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def error_message(self) -> str | None:
        """``error.message`` from an OpenAI-style JSON body, if present."""
        try:
            data = json.loads(self.body)
        except (json.JSONDecodeError, TypeError):
            return None
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
        return None

    def __str__(self) -> str:
        detail = self.error_message or self.body[:200]
        base = f"{super().__str__()} (status {self.status_code})"
        return f"{base}: {detail}" if detail else base
