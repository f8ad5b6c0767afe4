"""Event bus for Open Translator."""

from open_translator.events.bus import EventBus

__all__ = ["EventBus"]
