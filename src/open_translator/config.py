"""Configuration for Open Translator.

Config discovery (first match wins):
  1. ``--config`` flag
  2. ``./open_translator.yaml``
  3. ``~/.config/open-translator/config.yaml``
  4. Built-in defaults

The active provider's API key can be overridden with the
``OPEN_TRANSLATOR_API_KEY`` environment variable.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

_logger = logging.getLogger(__name__)

_API_KEY_ENV = "OPEN_TRANSLATOR_API_KEY"
DEFAULT_CHAT_PATH = "/chat/completions"


# ---------------------------------------------------------------------------
# Config data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProviderConfig:
    """One OpenAI-compatible backend (OpenAI, OpenRouter, a gateway, ...).

    Immutable: the engine reads it but never mutates it.  Use
    :func:`dataclasses.replace` to derive a modified copy.
    """

    name: str = "OpenAI"
    api_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    api_path: str = DEFAULT_CHAT_PATH
    selected_models: tuple[str, ...] = ()
    custom_headers: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_default: bool = False
    enabled: bool = True

    @property
    def base_url(self) -> str:
        return self.api_url.rstrip("/")

    @property
    def chat_completions_url(self) -> str:
        path = self.api_path or DEFAULT_CHAT_PATH
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    @property
    def models_url(self) -> str:
        return f"{self.base_url}/models"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "api_url": self.api_url,
            "api_path": self.api_path,
            "api_key": self.api_key,
            "model": self.model,
            "selected_models": list(self.selected_models),
            "custom_headers": dict(self.custom_headers),
            "is_default": self.is_default,
            "enabled": self.enabled,
        }


@dataclass
class TranslatorConfig:
    """Top-level config for Open Translator."""

    # Active provider name
    provider: str = "openai"

    # Named providers
    providers: dict[str, ProviderConfig] = field(
        default_factory=lambda: {"openai": ProviderConfig()}
    )

    source_language: str = "auto"
    target_language: str = "zh"

    # Sampling
    temperature: float = 0.3
    explain_temperature: float = 0.7

    # Connection handling
    max_retries: int = 3
    chat_timeout: float = 60.0
    models_timeout: float = 15.0

    # Prompt template overrides (keys of PromptTemplates)
    prompts: dict[str, str] = field(default_factory=dict)

    @property
    def active_provider(self) -> ProviderConfig:
        return self.providers.get(self.provider, ProviderConfig())


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_SEARCH_PATHS = [
    Path("./open_translator.yaml"),
    Path.home() / ".config" / "open-translator" / "config.yaml",
]


def _parse_provider(name: str, raw: dict[str, Any]) -> ProviderConfig:
    headers = raw.get("custom_headers") or {}
    return ProviderConfig(
        name=raw.get("name", name),
        api_url=raw.get("api_url", "https://api.openai.com/v1"),
        api_key=raw.get("api_key", ""),
        model=raw.get("model", "gpt-4o-mini"),
        api_path=raw.get("api_path", DEFAULT_CHAT_PATH),
        selected_models=tuple(raw.get("selected_models") or ()),
        custom_headers={str(k): str(v) for k, v in headers.items()},
        id=raw.get("id") or str(uuid.uuid4()),
        is_default=bool(raw.get("is_default", False)),
        enabled=bool(raw.get("enabled", True)),
    )


def _apply_env(config: TranslatorConfig) -> TranslatorConfig:
    api_key = os.environ.get(_API_KEY_ENV)
    if api_key and config.provider in config.providers:
        config.providers[config.provider] = replace(
            config.providers[config.provider], api_key=api_key,
        )
    return config


def load_config(path: str | Path | None = None) -> TranslatorConfig:
    """Load configuration from YAML.

    Parameters
    ----------
    path:
        Explicit config path.  If *None*, search default locations.

    Returns
    -------
    TranslatorConfig
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            _logger.warning("Config file not found: %s, using defaults", path)
            return _apply_env(TranslatorConfig())
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None:
        _logger.info("No config file found, using defaults")
        return _apply_env(TranslatorConfig())

    _logger.info("Loading config from %s", config_path)
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    providers: dict[str, ProviderConfig] = {}
    for name, praw in (raw.get("providers") or {}).items():
        providers[name] = _parse_provider(name, praw or {})

    if not providers:
        providers["openai"] = ProviderConfig()

    config = TranslatorConfig(
        provider=raw.get("provider", next(iter(providers))),
        providers=providers,
        source_language=raw.get("source_language", "auto"),
        target_language=raw.get("target_language", "zh"),
        temperature=float(raw.get("temperature", 0.3)),
        explain_temperature=float(raw.get("explain_temperature", 0.7)),
        max_retries=int(raw.get("max_retries", 3)),
        chat_timeout=float(raw.get("chat_timeout", 60.0)),
        models_timeout=float(raw.get("models_timeout", 15.0)),
        prompts=dict(raw.get("prompts") or {}),
    )
    return _apply_env(config)
