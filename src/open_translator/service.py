"""Translation service: active provider + prompt templates + one engine."""

from __future__ import annotations

import logging

from open_translator.config import ProviderConfig, TranslatorConfig
from open_translator.events.bus import EventBus
from open_translator.llm.engine import CompletionEngine
from open_translator.llm.request_builder import TemperaturePolicy
from open_translator.llm.stream import CompletionStream
from open_translator.prompts.languages import detect_language
from open_translator.prompts.templates import PromptTemplates
from open_translator.types import ModelInfo, TranslateMode

_logger = logging.getLogger(__name__)


class TranslationService:
    """High-level entry point used by the UI layer.

    Switching providers or templates does not recreate the engine: the
    provider travels with each call, so in-flight streams keep the provider
    they started with.
    """

    def __init__(
        self,
        config: TranslatorConfig | None = None,
        *,
        engine: CompletionEngine | None = None,
        templates: PromptTemplates | None = None,
        temperature_policy: TemperaturePolicy | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config or TranslatorConfig()
        self.engine = engine or CompletionEngine(
            temperature_policy=temperature_policy,
            max_attempts=self.config.max_retries,
            chat_timeout=self.config.chat_timeout,
            models_timeout=self.config.models_timeout,
            event_bus=event_bus,
        )
        self.templates = templates or PromptTemplates.from_dict(self.config.prompts)
        self._provider: ProviderConfig | None = None
        if self.config.provider in self.config.providers:
            self._provider = self.config.providers[self.config.provider]

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def provider(self) -> ProviderConfig | None:
        return self._provider

    @property
    def has_provider(self) -> bool:
        return self._provider is not None and not self.engine.closed

    def set_provider(self, provider: ProviderConfig) -> None:
        _logger.info("Active provider: %s (%s)", provider.name, provider.base_url)
        self._provider = provider

    def set_prompt_templates(self, templates: PromptTemplates) -> None:
        self.templates = templates

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def translate(
        self,
        text: str,
        source_language: str | None = None,
        target_language: str | None = None,
        mode: TranslateMode = TranslateMode.TRANSLATE,
        *,
        model: str | None = None,
    ) -> CompletionStream:
        """Stream a translation, explanation or polish of *text*."""
        provider = self._require_provider()
        system, user = self.templates.build_prompts(
            mode,
            text,
            self._source_for(text, source_language),
            target_language or self.config.target_language,
        )
        return self.engine.stream_completion(
            system,
            user,
            model or provider.model,
            provider,
            temperature=self.config.temperature,
        )

    def explain_in_context(
        self,
        selected_word: str,
        full_context: str,
        source_language: str | None = None,
        target_language: str | None = None,
        *,
        model: str | None = None,
    ) -> CompletionStream:
        """Stream an explanation of *selected_word* as used in *full_context*."""
        provider = self._require_provider()
        system, user = self.templates.build_context_prompts(
            selected_word,
            full_context,
            self._source_for(full_context, source_language),
            target_language or self.config.target_language,
        )
        return self.engine.stream_completion(
            system,
            user,
            model or provider.model,
            provider,
            temperature=self.config.explain_temperature,
        )

    async def list_models(self) -> list[ModelInfo]:
        if self._provider is None:
            return []
        return await self.engine.list_models(self._provider)

    async def test_connection(self) -> bool:
        if self._provider is None:
            return False
        return await self.engine.test_connection(self._provider)

    async def aclose(self) -> None:
        await self.engine.aclose()

    def _source_for(self, text: str, source_language: str | None) -> str:
        """Resolve an ``auto`` source by script detection.

        Latin-script text detects as English whatever its language, so that
        case stays ``auto`` and the model works it out.
        """
        source = source_language or self.config.source_language
        if source.lower() != "auto":
            return source
        detected = detect_language(text)
        return source if detected == "en" else detected

    def _require_provider(self) -> ProviderConfig:
        if self._provider is None:
            raise RuntimeError("No provider configured. Call set_provider() first.")
        return self._provider
