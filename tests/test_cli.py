"""Tests for the click command group."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest
import yaml
from click.testing import CliRunner

from open_translator.cli import StreamingDisplay, main
from open_translator.config import TranslatorConfig
from open_translator.service import TranslationService
from open_translator.types import EventType, TranslatorEvent

from helpers import Recorder, sse_response


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def service_for(make_engine, provider):
    """Patch ``_build_service`` to return a service backed by *script*."""

    def _make(*script):
        rec = Recorder(*script)
        cfg = TranslatorConfig(provider="test", providers={"test": provider})
        service = TranslationService(cfg, engine=make_engine(rec))
        return patch("open_translator.cli._build_service", return_value=service), rec

    return _make


class TestTranslateCommand:
    def test_streams_to_stdout(self, runner, service_for):
        patcher, rec = service_for(sse_response("Hello", " world"))
        with patcher:
            result = runner.invoke(main, ["translate", "Bonjour", "le", "monde", "--to", "en"])

        assert result.exit_code == 0, result.output
        assert "Hello world" in result.output
        assert rec.bodies[0]["messages"][1]["content"] == "Bonjour le monde"
        assert "to English" in rec.bodies[0]["messages"][0]["content"]

    def test_reads_stdin(self, runner, service_for):
        patcher, rec = service_for(sse_response("ok"))
        with patcher:
            result = runner.invoke(main, ["translate"], input="Hola amigo\n")
        assert result.exit_code == 0, result.output
        assert rec.bodies[0]["messages"][1]["content"] == "Hola amigo\n"

    def test_empty_input_is_usage_error(self, runner, service_for):
        patcher, rec = service_for(sse_response("ok"))
        with patcher:
            result = runner.invoke(main, ["translate"], input="   ")
        assert result.exit_code == 2
        assert rec.requests == []

    def test_api_error_exits_1(self, runner, service_for):
        patcher, _ = service_for(
            httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}}),
        )
        with patcher:
            result = runner.invoke(main, ["translate", "hi"])
        assert result.exit_code == 1
        assert "Incorrect API key provided" in result.output

    def test_explain_mode(self, runner, service_for):
        patcher, rec = service_for(sse_response("ok"))
        with patcher:
            result = runner.invoke(main, ["translate", "--mode", "explain", "ephemeral"])
        assert result.exit_code == 0, result.output
        assert "**ephemeral**" in rec.bodies[0]["messages"][1]["content"]


class TestModelsCommand:
    def test_lists_models(self, runner, service_for):
        patcher, _ = service_for(
            httpx.Response(200, json={"data": [{"id": "gpt-4o"}, {"id": "gpt-4o-mini"}]}),
        )
        with patcher:
            result = runner.invoke(main, ["models"])
        assert result.exit_code == 0, result.output
        assert "gpt-4o-mini" in result.output

    def test_no_models_exits_1(self, runner, service_for):
        patcher, _ = service_for(httpx.Response(500))
        with patcher:
            result = runner.invoke(main, ["models"])
        assert result.exit_code == 1


class TestTestCommand:
    def test_ok(self, runner, service_for):
        patcher, _ = service_for(httpx.Response(200, json={"data": [{"id": "m"}]}))
        with patcher:
            result = runner.invoke(main, ["test"])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_fail(self, runner, service_for):
        patcher, _ = service_for(httpx.Response(401))
        with patcher:
            result = runner.invoke(main, ["test"])
        assert result.exit_code == 1
        assert "FAIL" in result.output


class TestProfileOption:
    def test_unknown_profile(self, runner, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"providers": {"local": {"model": "m"}}}))
        result = runner.invoke(main, ["-c", str(path), "-p", "nope", "test"])
        assert result.exit_code == 2
        assert "nope" in result.output


class TestStreamingDisplay:
    def test_retry_event(self):
        con = MagicMock()
        StreamingDisplay(con).handle(TranslatorEvent(
            type=EventType.REQUEST_RETRY, data={"attempt": 1, "delay": 1.0, "error": "x"},
        ))
        printed = con.print.call_args[0][0]
        assert "retry in 1s" in printed
        assert "attempt 1" in printed

    def test_fallback_event(self):
        con = MagicMock()
        StreamingDisplay(con).handle(TranslatorEvent(
            type=EventType.TEMPERATURE_FALLBACK, data={"model": "gpt-5", "temperature": 0.3},
        ))
        assert "gpt-5" in con.print.call_args[0][0]

    def test_other_events_ignored(self):
        con = MagicMock()
        StreamingDisplay(con).handle(TranslatorEvent(type=EventType.STREAM_DONE))
        con.print.assert_not_called()
