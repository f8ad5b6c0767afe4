"""Open Translator: streaming translation over OpenAI-compatible APIs."""

from open_translator.config import ProviderConfig, TranslatorConfig, load_config
from open_translator.errors import (
    EngineError,
    ProviderAPIError,
    ProviderConfigError,
    ProviderConnectionError,
)
from open_translator.llm.engine import CompletionEngine
from open_translator.llm.stream import CompletionStream
from open_translator.service import TranslationService
from open_translator.types import CallState, ModelInfo, TranslateMode

__version__ = "0.3.0"

__all__ = [
    "CallState",
    "CompletionEngine",
    "CompletionStream",
    "EngineError",
    "ModelInfo",
    "ProviderAPIError",
    "ProviderConfig",
    "ProviderConfigError",
    "ProviderConnectionError",
    "TranslateMode",
    "TranslationService",
    "TranslatorConfig",
    "load_config",
]
