"""Tests for Open Translator config."""

from dataclasses import replace

import pytest
import yaml

from open_translator.config import ProviderConfig, TranslatorConfig, load_config


class TestProviderConfig:
    def test_defaults(self):
        p = ProviderConfig()
        assert p.name == "OpenAI"
        assert p.chat_completions_url == "https://api.openai.com/v1/chat/completions"
        assert p.enabled
        assert not p.is_default

    def test_ids_unique(self):
        assert ProviderConfig().id != ProviderConfig().id

    def test_immutable(self):
        p = ProviderConfig()
        with pytest.raises(Exception):
            p.api_key = "changed"  # type: ignore[misc]
        assert replace(p, api_key="changed").api_key == "changed"

    def test_to_dict(self):
        p = ProviderConfig(name="R", selected_models=("a", "b"), custom_headers={"X": "1"})
        d = p.to_dict()
        assert d["name"] == "R"
        assert d["selected_models"] == ["a", "b"]
        assert d["custom_headers"] == {"X": "1"}


class TestTranslatorConfig:
    def test_defaults(self):
        cfg = TranslatorConfig()
        assert cfg.provider == "openai"
        assert cfg.max_retries == 3
        assert cfg.temperature == 0.3
        assert cfg.explain_temperature == 0.7
        assert cfg.target_language == "zh"

    def test_active_provider(self):
        router = ProviderConfig(name="OpenRouter", api_url="https://openrouter.ai/api/v1")
        cfg = TranslatorConfig(provider="router", providers={"router": router})
        assert cfg.active_provider is router

    def test_active_provider_fallback(self):
        cfg = TranslatorConfig(provider="nonexistent")
        assert cfg.active_provider.name == "OpenAI"


class TestLoadConfig:
    @pytest.fixture(autouse=True)
    def _no_env_key(self, monkeypatch):
        monkeypatch.delenv("OPEN_TRANSLATOR_API_KEY", raising=False)

    def test_defaults_when_no_file(self, tmp_path):
        cfg = load_config(tmp_path / "does_not_exist.yaml")
        assert cfg.provider == "openai"
        assert cfg.max_retries == 3

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        cfg = load_config(path)
        assert "openai" in cfg.providers

    def test_full_file(self, tmp_path):
        data = {
            "provider": "router",
            "target_language": "ja",
            "temperature": 0.5,
            "max_retries": 5,
            "providers": {
                "router": {
                    "name": "OpenRouter",
                    "api_url": "https://openrouter.ai/api/v1",
                    "api_key": "sk-or",
                    "model": "openai/gpt-4o-mini",
                    "selected_models": ["openai/gpt-4o-mini", "anthropic/claude-3.5-haiku"],
                    "custom_headers": {"HTTP-Referer": "https://example.com", "X-Retry": 1},
                },
                "local": {"api_url": "http://localhost:11434/v1", "model": "llama3"},
            },
            "prompts": {"translate_user": "Translate: {text}"},
        }
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(data))

        cfg = load_config(path)

        assert cfg.provider == "router"
        assert cfg.target_language == "ja"
        assert cfg.temperature == 0.5
        assert cfg.max_retries == 5
        router = cfg.active_provider
        assert router.name == "OpenRouter"
        assert router.selected_models == ("openai/gpt-4o-mini", "anthropic/claude-3.5-haiku")
        assert router.custom_headers == {"HTTP-Referer": "https://example.com", "X-Retry": "1"}
        assert cfg.providers["local"].name == "local"
        assert cfg.providers["local"].api_key == ""
        assert cfg.prompts == {"translate_user": "Translate: {text}"}

    def test_provider_defaults_to_first(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"providers": {"local": {"model": "m"}}}))
        assert load_config(path).provider == "local"

    def test_env_overrides_active_key(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({
            "provider": "a",
            "providers": {"a": {"api_key": "from-file"}, "b": {"api_key": "other"}},
        }))
        monkeypatch.setenv("OPEN_TRANSLATOR_API_KEY", "from-env")

        cfg = load_config(path)

        assert cfg.providers["a"].api_key == "from-env"
        assert cfg.providers["b"].api_key == "other"

    def test_search_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "open_translator.yaml").write_text(yaml.dump({"target_language": "ko"}))
        assert load_config().target_language == "ko"
