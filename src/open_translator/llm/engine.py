"""Streaming completion engine for OpenAI-compatible chat APIs.

One engine instance owns one ``httpx.AsyncClient``.  Calls share nothing
but that client: every call builds its own request, retry state and SSE
decoder, so concurrent calls need no locking.

Two independently bounded retry loops wrap each chat completion:

- the outer loop changes the request *shape*, at most once, when the
  provider rejects a custom ``temperature``;
- the inner loop (:class:`ConnectionRetry`) repeats the same shape on
  transient transport failures, with a fresh budget per shape.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

import httpx

from open_translator.config import ProviderConfig
from open_translator.errors import EngineError, ProviderAPIError, ProviderConnectionError
from open_translator.events.bus import EventBus
from open_translator.types import (
    CallState,
    ChatRequest,
    EventType,
    ModelInfo,
    TranslatorEvent,
)

from .request_builder import (
    DenyListTemperaturePolicy,
    TemperaturePolicy,
    build_chat_request,
    build_headers,
)
from .retry import ConnectionRetry, RetryState
from .sse import SSEDecoder, iter_deltas
from .stream import CompletionStream

_logger = logging.getLogger(__name__)

# First request plus at most one temperature-stripped retry
_MAX_SHAPE_ATTEMPTS = 2

_CHAT_TIMEOUT = 60.0
_MODELS_TIMEOUT = 15.0


def is_temperature_unsupported(status_code: int, request: ChatRequest, body: str) -> bool:
    """True when a 400 response rejects the request's ``temperature``.

    Requires ``error.param == "temperature"`` and either
    ``error.code == "unsupported_value"`` or a message mentioning both
    "temperature" and "default".
    """
    if status_code != 400 or not request.has_temperature:
        return False
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return False
    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict) or error.get("param") != "temperature":
        return False
    if error.get("code") == "unsupported_value":
        return True
    message = str(error.get("message") or "").lower()
    return "temperature" in message and "default" in message


def parse_models(data: Any) -> list[ModelInfo]:
    """Map a ``{"data": [{"id": ...}, ...]}`` body to :class:`ModelInfo`."""
    if not isinstance(data, dict):
        return []
    entries = data.get("data")
    if not isinstance(entries, list):
        return []
    return [
        ModelInfo(id=entry["id"], display_name=entry["id"])
        for entry in entries
        if isinstance(entry, dict) and isinstance(entry.get("id"), str)
    ]


class CompletionEngine:
    """Client for OpenAI-compatible ``/models`` and streaming chat endpoints.

    Parameters
    ----------
    client:
        Optional pre-built ``httpx.AsyncClient``.  The engine takes
        ownership and closes it in :meth:`aclose`.
    temperature_policy:
        Decides per model/host whether ``temperature`` may be sent.
    max_attempts:
        Connection attempts per request shape.
    backoff_base:
        Linear backoff unit in seconds (1, 2, ... times this value).
    event_bus:
        Optional bus that receives progress events.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        temperature_policy: TemperaturePolicy | None = None,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        chat_timeout: float = _CHAT_TIMEOUT,
        models_timeout: float = _MODELS_TIMEOUT,
        event_bus: EventBus | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(chat_timeout),
            follow_redirects=True,
        )
        self.temperature_policy = temperature_policy or DenyListTemperaturePolicy()
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.chat_timeout = chat_timeout
        self.models_timeout = models_timeout
        self.event_bus = event_bus
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        """Close the HTTP client.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self._client.aclose()

    async def __aenter__(self) -> CompletionEngine:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Model listing
    # ------------------------------------------------------------------

    async def list_models(self, provider: ProviderConfig) -> list[ModelInfo]:
        """Return the provider's models, or an empty list on any failure."""
        url = provider.models_url

        async def _get() -> httpx.Response:
            client = self._require_client()
            try:
                return await client.get(url, headers=headers, timeout=self.models_timeout)
            except RuntimeError as e:
                self._raise_if_closed(e)
                raise

        retry = ConnectionRetry(
            max_attempts=self.max_attempts,
            backoff_base=self.backoff_base,
            label="model listing",
        )
        try:
            headers = build_headers(provider)
            response = await retry.attempt(_get)
        except (EngineError, httpx.HTTPError, httpx.InvalidURL) as e:
            _logger.warning("Fetching models from %s failed: %s", url, e)
            return []

        if not 200 <= response.status_code < 300:
            _logger.warning(
                "Fetching models from %s returned %d", url, response.status_code,
            )
            return []
        try:
            models = parse_models(response.json())
        except ValueError:
            _logger.warning("Models response from %s is not valid JSON", url)
            return []

        await self._emit(EventType.MODELS_LISTED, provider=provider.name, count=len(models))
        return models

    async def test_connection(self, provider: ProviderConfig) -> bool:
        """True iff the provider lists at least one model."""
        return bool(await self.list_models(provider))

    # ------------------------------------------------------------------
    # Streaming chat completion
    # ------------------------------------------------------------------

    def stream_completion(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        provider: ProviderConfig,
        *,
        allow_temperature: bool = True,
        temperature: float | None = None,
    ) -> CompletionStream:
        """Start a streaming completion and return its delta stream.

        Nothing is sent until the stream is first iterated.
        """
        request = build_chat_request(
            system_prompt,
            user_prompt,
            model,
            provider,
            temperature=temperature,
            allow_temperature=allow_temperature,
            policy=self.temperature_policy,
        )
        return CompletionStream(
            lambda stream: self._run(stream, request, provider),
            on_cancel=self._on_cancel,
        )

    async def _run(
        self,
        stream: CompletionStream,
        request: ChatRequest,
        provider: ProviderConfig,
    ) -> AsyncIterator[str]:
        url = provider.chat_completions_url
        _logger.debug("POST %s model=%s", url, request.model)
        await self._emit(
            EventType.REQUEST_STARTED,
            provider=provider.name,
            model=request.model,
            temperature=request.temperature,
        )

        try:
            headers = build_headers(provider)
            for shape in range(_MAX_SHAPE_ATTEMPTS):
                stream.state = CallState.SENDING
                sent_before = stream.requests_sent
                response = await self._send_chat(stream, url, headers, request)
                attempts = stream.requests_sent - sent_before
                try:
                    if response.status_code == 200:
                        stream.state = CallState.STREAMING
                        async for delta in self._read_deltas(response, attempts):
                            yield delta
                        stream.state = CallState.DONE
                        await self._emit(
                            EventType.STREAM_DONE,
                            model=request.model,
                            chars=len(stream.text),
                        )
                        return
                    try:
                        raw = await response.aread()
                    except httpx.TransportError as e:
                        raise ProviderConnectionError(
                            "Failed to read error response", cause=e, attempts=attempts,
                        ) from e
                    body = raw.decode("utf-8", errors="replace")
                finally:
                    await response.aclose()

                _logger.warning(
                    "Chat completion returned %d: %.500s", response.status_code, body,
                )
                can_fallback = shape + 1 < _MAX_SHAPE_ATTEMPTS
                if can_fallback and is_temperature_unsupported(
                    response.status_code, request, body,
                ):
                    _logger.info(
                        "Model %s rejected temperature=%s, retrying without it",
                        request.model, request.temperature,
                    )
                    stream.state = CallState.TEMPERATURE_FALLBACK
                    await self._emit(
                        EventType.TEMPERATURE_FALLBACK,
                        model=request.model,
                        temperature=request.temperature,
                    )
                    request = request.without_temperature()
                    continue
                raise ProviderAPIError(
                    "API request failed",
                    status_code=response.status_code,
                    body=body,
                )
        except EngineError as e:
            stream.state = CallState.FAILED
            stream.error = e
            await self._emit(EventType.STREAM_ERROR, model=request.model, error=str(e))
            raise

    async def _send_chat(
        self,
        stream: CompletionStream,
        url: str,
        headers: dict[str, str],
        request: ChatRequest,
    ) -> httpx.Response:
        payload = request.to_payload()

        async def _send() -> httpx.Response:
            client = self._require_client()
            http_request = client.build_request(
                "POST", url, headers=headers, json=payload, timeout=self.chat_timeout,
            )
            stream.requests_sent += 1
            try:
                return await client.send(http_request, stream=True)
            except RuntimeError as e:
                self._raise_if_closed(e)
                raise

        async def _on_retry(state: RetryState) -> None:
            stream.state = CallState.RETRYING
            await self._emit(
                EventType.REQUEST_RETRY,
                attempt=state.attempt,
                delay=state.delay,
                error=repr(state.last_error),
            )

        retry = ConnectionRetry(
            max_attempts=self.max_attempts,
            backoff_base=self.backoff_base,
            label="chat completion",
        )
        return await retry.attempt(_send, on_retry=_on_retry)

    async def _read_deltas(
        self,
        response: httpx.Response,
        attempts: int,
    ) -> AsyncIterator[str]:
        decoder = SSEDecoder()
        try:
            async for delta in iter_deltas(self._guard_closed(response), decoder):
                yield delta
        except httpx.TransportError as e:
            raise ProviderConnectionError(
                "Stream interrupted", cause=e, attempts=attempts,
            ) from e
        if decoder.skipped:
            _logger.info("Skipped %d malformed SSE frame(s)", decoder.skipped)

    async def _guard_closed(self, response: httpx.Response) -> AsyncIterator[bytes]:
        async for chunk in response.aiter_bytes():
            if self._closed:
                raise ProviderConnectionError("HTTP client closed while streaming")
            yield chunk

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_client(self) -> httpx.AsyncClient:
        if self._closed or self._client.is_closed:
            raise ProviderConnectionError("HTTP client has been closed")
        return self._client

    def _raise_if_closed(self, exc: RuntimeError) -> None:
        # httpx raises RuntimeError when the client was closed mid-call.
        if self._closed or self._client.is_closed:
            raise ProviderConnectionError(
                "HTTP client has been closed", cause=exc, attempts=1,
            ) from exc

    async def _on_cancel(self, stream: CompletionStream) -> None:
        await self._emit(EventType.STREAM_CANCELLED, chars=len(stream.text))

    async def _emit(self, event_type: EventType, **data: Any) -> None:
        if self.event_bus is not None:
            await self.event_bus.emit(TranslatorEvent(type=event_type, data=data))
