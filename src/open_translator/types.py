"""Shared data types for Open Translator."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Request modes
# ---------------------------------------------------------------------------

class TranslateMode(enum.Enum):
    """What the user asked for."""

    TRANSLATE = "translate"
    EXPLAIN = "explain"
    POLISH = "polish"
    EXPLAIN_IN_CONTEXT = "explain_in_context"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").capitalize()


# ---------------------------------------------------------------------------
# LLM types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelInfo:
    """One model exposed by a provider's ``/models`` endpoint."""

    id: str
    display_name: str


@dataclass
class ChatRequest:
    """Body of a single streaming chat completion POST.

    Built fresh for every call.  :meth:`without_temperature` derives a new
    request instead of mutating this one.
    """

    model: str
    messages: list[dict[str, str]]
    stream: bool = True
    temperature: float | None = None

    @property
    def has_temperature(self) -> bool:
        return self.temperature is not None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [dict(m) for m in self.messages],
            "stream": self.stream,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload

    def without_temperature(self) -> ChatRequest:
        return ChatRequest(
            model=self.model,
            messages=[dict(m) for m in self.messages],
            stream=self.stream,
            temperature=None,
        )


class CallState(enum.Enum):
    """Lifecycle of one streaming completion call."""

    BUILDING = "building"
    SENDING = "sending"
    RETRYING = "retrying"
    TEMPERATURE_FALLBACK = "temperature_fallback"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (CallState.DONE, CallState.FAILED, CallState.CANCELLED)


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

class EventType(enum.Enum):
    """Events emitted by the engine for UI observers."""

    REQUEST_STARTED = "request.started"
    REQUEST_RETRY = "request.retry"
    TEMPERATURE_FALLBACK = "request.temperature_fallback"
    STREAM_DONE = "stream.done"
    STREAM_ERROR = "stream.error"
    STREAM_CANCELLED = "stream.cancelled"
    MODELS_LISTED = "models.listed"


@dataclass
class TranslatorEvent:
    """Event emitted via the EventBus."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
