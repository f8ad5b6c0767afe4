"""Async pub/sub EventBus for decoupling the engine from the UI."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from open_translator.types import EventType, TranslatorEvent

_logger = logging.getLogger(__name__)

# Key used for wildcard subscriptions (receive all events)
_WILDCARD = "*"

Handler = Callable[[TranslatorEvent], Any]


class EventBus:
    """Lightweight async pub/sub event bus.

    - Subscribe to a specific EventType or wildcard ``"*"`` for all events.
    - Handlers can be sync or async.
    - Handlers run in subscription order; one failing handler does not stop
      the others.
    """

    def __init__(self, max_history: int = 200) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._history: list[TranslatorEvent] = []
        self._max_history = max_history

    def subscribe(self, event_type: EventType | str, handler: Handler) -> None:
        """Register *handler* for *event_type* (or ``"*"`` for all)."""
        self._handlers.setdefault(self._key(event_type), []).append(handler)

    def unsubscribe(self, event_type: EventType | str, handler: Handler) -> None:
        handlers = self._handlers.get(self._key(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: TranslatorEvent) -> None:
        """Deliver *event* to matching handlers.

        Exceptions in individual handlers are logged and do not propagate.
        """
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        handlers = list(self._handlers.get(self._key(event.type), []))
        handlers.extend(self._handlers.get(_WILDCARD, []))
        for handler in handlers:
            await self._call_handler(handler, event)

    @property
    def history(self) -> list[TranslatorEvent]:
        return list(self._history)

    def clear(self) -> None:
        self._handlers.clear()
        self._history.clear()

    @staticmethod
    def _key(event_type: EventType | str) -> str:
        if isinstance(event_type, EventType):
            return event_type.value
        return str(event_type)

    @staticmethod
    async def _call_handler(handler: Handler, event: TranslatorEvent) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            _logger.exception(
                "EventBus handler %s raised for event %s",
                getattr(handler, "__name__", handler),
                event.type,
            )
