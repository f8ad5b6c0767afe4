"""Shared fixtures: a provider and an engine wired to ``httpx.MockTransport``."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from open_translator.config import ProviderConfig
from open_translator.llm.engine import CompletionEngine


@pytest.fixture
def provider() -> ProviderConfig:
    return ProviderConfig(
        name="Test",
        api_url="https://api.example.com/v1/",
        api_key="sk-test",
        model="test-model",
        custom_headers={"X-Title": "Open Translator"},
    )


@pytest.fixture
def make_engine() -> Callable[..., CompletionEngine]:
    """Build an engine whose client talks to a MockTransport *handler*."""

    def _make(handler: Callable[[httpx.Request], Any], **kwargs: Any) -> CompletionEngine:
        kwargs.setdefault("backoff_base", 0)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return CompletionEngine(client, **kwargs)

    return _make
