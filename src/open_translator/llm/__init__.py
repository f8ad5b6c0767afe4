"""Completion engine for OpenAI-compatible providers."""

from open_translator.llm.engine import CompletionEngine, is_temperature_unsupported
from open_translator.llm.request_builder import (
    AllowAllTemperatures,
    DenyListTemperaturePolicy,
    TemperaturePolicy,
    TemperatureRule,
    build_chat_request,
    build_headers,
)
from open_translator.llm.retry import ConnectionRetry, RetryState
from open_translator.llm.sse import SSEDecoder, iter_deltas
from open_translator.llm.stream import CompletionStream

__all__ = [
    "AllowAllTemperatures",
    "CompletionEngine",
    "CompletionStream",
    "ConnectionRetry",
    "DenyListTemperaturePolicy",
    "RetryState",
    "SSEDecoder",
    "TemperaturePolicy",
    "TemperatureRule",
    "build_chat_request",
    "build_headers",
    "is_temperature_unsupported",
    "iter_deltas",
]
