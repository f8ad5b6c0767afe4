"""Tests for TranslationService wiring over a mocked engine transport."""

from __future__ import annotations

import httpx
import pytest

from open_translator.config import ProviderConfig, TranslatorConfig
from open_translator.prompts.templates import PromptTemplates
from open_translator.service import TranslationService
from open_translator.types import TranslateMode

from helpers import Recorder, sse_response


@pytest.fixture
def config(provider):
    return TranslatorConfig(
        provider="test",
        providers={"test": provider},
        source_language="auto",
        target_language="zh",
    )


def _service(make_engine, config, *script):
    rec = Recorder(*script)
    return TranslationService(config, engine=make_engine(rec)), rec


class TestTranslate:
    async def test_streams_translation(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("你好"))

        text = await service.translate("Hello").collect()

        assert text == "你好"
        body = rec.bodies[0]
        assert body["model"] == "test-model"
        assert body["temperature"] == 0.3
        assert body["messages"][1] == {"role": "user", "content": "Hello"}
        assert "auto-detected language to Chinese" in body["messages"][0]["content"]
        await service.aclose()

    async def test_explicit_languages_and_model(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        await service.translate("Hola", "es", "en", model="other-model").collect()
        body = rec.bodies[0]
        assert body["model"] == "other-model"
        assert "from Spanish to English" in body["messages"][0]["content"]
        await service.aclose()

    async def test_auto_source_named_from_script(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        await service.translate("日本語を勉強しています", target_language="en").collect()
        assert "from Japanese to English" in rec.bodies[0]["messages"][0]["content"]
        await service.aclose()

    async def test_latin_text_stays_auto(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        await service.translate("Guten Morgen", target_language="en").collect()
        assert "from auto-detected language to English" in rec.bodies[0]["messages"][0]["content"]
        await service.aclose()

    async def test_explicit_source_not_detected(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        await service.translate("你好", "ja", "en").collect()
        assert "from Japanese to English" in rec.bodies[0]["messages"][0]["content"]
        await service.aclose()

    async def test_explain_mode(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        await service.translate("ephemeral", mode=TranslateMode.EXPLAIN).collect()
        assert "**ephemeral**" in rec.bodies[0]["messages"][1]["content"]
        await service.aclose()

    async def test_explain_in_context_uses_explain_temperature(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        await service.explain_in_context("bank", "Meet me at the bank.").collect()
        body = rec.bodies[0]
        assert body["temperature"] == 0.7
        assert '"Meet me at the bank."' in body["messages"][1]["content"]
        await service.aclose()

    async def test_custom_templates(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        service.set_prompt_templates(PromptTemplates(translate_user="T: {text}"))
        await service.translate("x").collect()
        assert rec.bodies[0]["messages"][1]["content"] == "T: x"
        await service.aclose()

    async def test_templates_from_config(self, make_engine, config):
        config.prompts = {"polish_user": "Polish: {text}"}
        service, rec = _service(make_engine, config, sse_response("ok"))
        await service.translate("x", mode=TranslateMode.POLISH).collect()
        assert rec.bodies[0]["messages"][1]["content"] == "Polish: x"
        await service.aclose()


class TestProviderSwitching:
    async def test_set_provider(self, make_engine, config):
        service, rec = _service(make_engine, config, sse_response("ok"))
        other = ProviderConfig(name="Other", api_url="https://other.example.com/v1", api_key="k2")
        service.set_provider(other)

        await service.translate("x").collect()

        assert str(rec.requests[0].url) == "https://other.example.com/v1/chat/completions"
        assert rec.requests[0].headers["Authorization"] == "Bearer k2"
        await service.aclose()

    async def test_in_flight_stream_keeps_its_provider(self, make_engine, config, provider):
        service, rec = _service(make_engine, config, sse_response("ok"))
        stream = service.translate("x")
        service.set_provider(ProviderConfig(name="Other", api_url="https://other.example.com/v1"))

        await stream.collect()

        assert rec.requests[0].url.host == "api.example.com"
        await service.aclose()


class TestNoProvider:
    @pytest.fixture
    def service(self, make_engine):
        cfg = TranslatorConfig(provider="missing", providers={})
        return TranslationService(cfg, engine=make_engine(Recorder(httpx.Response(500))))

    async def test_translate_raises(self, service):
        assert not service.has_provider
        with pytest.raises(RuntimeError, match="No provider configured"):
            service.translate("x")
        await service.aclose()

    async def test_models_empty(self, service):
        assert await service.list_models() == []
        assert await service.test_connection() is False
        await service.aclose()


class TestModels:
    async def test_list_models(self, make_engine, config):
        service, _ = _service(
            make_engine,
            config,
            httpx.Response(200, json={"data": [{"id": "m1"}]}),
            httpx.Response(200, json={"data": [{"id": "m1"}]}),
        )
        assert [m.id for m in await service.list_models()] == ["m1"]
        assert await service.test_connection() is True
        await service.aclose()

    async def test_closed_service_has_no_provider(self, make_engine, config):
        service, _ = _service(make_engine, config, sse_response("ok"))
        assert service.has_provider
        await service.aclose()
        assert not service.has_provider
