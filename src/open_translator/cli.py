"""Command-line entry point: stream translations to the terminal."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from open_translator.config import TranslatorConfig, load_config
from open_translator.errors import EngineError
from open_translator.events.bus import EventBus
from open_translator.service import TranslationService
from open_translator.types import EventType, TranslateMode, TranslatorEvent

console = Console()
err_console = Console(stderr=True)


class StreamingDisplay:
    """Renders engine progress events on stderr."""

    def __init__(self, con: Console):
        self.con = con

    def handle(self, event: TranslatorEvent) -> None:
        if event.type is EventType.REQUEST_RETRY:
            self.con.print(
                f"[yellow]~ connection failed, retry in {event.data['delay']:.0f}s"
                f" (attempt {event.data['attempt']})[/yellow]"
            )
        elif event.type is EventType.TEMPERATURE_FALLBACK:
            self.con.print(
                f"[magenta]~ {event.data['model']} rejected temperature, "
                "retrying with the default[/magenta]"
            )


def _build_service(config_path: str | None, profile: str | None, verbose: bool) -> TranslationService:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    config: TranslatorConfig = load_config(config_path)
    if profile:
        if profile not in config.providers:
            raise click.BadParameter(
                f"unknown provider {profile!r} (known: {', '.join(config.providers)})",
                param_hint="--profile",
            )
        config.provider = profile
    bus = EventBus()
    bus.subscribe("*", StreamingDisplay(err_console).handle)
    return TranslationService(config, event_bus=bus)


@click.group()
@click.option("--config", "-c", "config_path", default=None,
              help="Path to open_translator.yaml")
@click.option("--profile", "-p", default=None, help="Provider name from the config")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, profile: str | None, verbose: bool):
    """Open Translator - streaming translation via OpenAI-compatible APIs."""
    ctx.obj = {"config_path": config_path, "profile": profile, "verbose": verbose}


@main.command()
@click.argument("text", nargs=-1)
@click.option("--to", "target", default=None, help="Target language code")
@click.option("--from", "source", default=None, help="Source language code")
@click.option("--mode", "-m", type=click.Choice(["translate", "explain", "polish"]),
              default="translate", show_default=True)
@click.option("--model", default=None, help="Override the provider's default model")
@click.pass_obj
def translate(obj: dict, text: tuple[str, ...], target: str | None, source: str | None,
              mode: str, model: str | None):
    """Translate TEXT (or stdin when TEXT is '-' or omitted)."""
    joined = " ".join(text)
    if not joined or joined == "-":
        joined = sys.stdin.read()
    if not joined.strip():
        raise click.UsageError("No text provided")

    service = _build_service(obj["config_path"], obj["profile"], obj["verbose"])

    async def _run() -> int:
        try:
            stream = service.translate(
                joined, source, target, TranslateMode(mode), model=model,
            )
            async for delta in stream:
                console.print(delta, end="", highlight=False, markup=False)
            console.print()
            return 0
        except EngineError as e:
            err_console.print(f"[red]Error: {e}[/red]")
            return 1
        finally:
            await service.aclose()

    sys.exit(asyncio.run(_run()))


@main.command()
@click.pass_obj
def models(obj: dict):
    """List models exposed by the active provider."""
    service = _build_service(obj["config_path"], obj["profile"], obj["verbose"])

    async def _run():
        try:
            return await service.list_models()
        finally:
            await service.aclose()

    found = asyncio.run(_run())
    if not found:
        err_console.print("[red]No models returned (check URL and API key)[/red]")
        sys.exit(1)
    table = Table(title=f"Models @ {service.provider.name if service.provider else '?'}")
    table.add_column("ID")
    for info in found:
        table.add_row(info.id)
    console.print(table)


@main.command(name="test")
@click.pass_obj
def test_connection(obj: dict):
    """Check that the active provider is reachable."""
    service = _build_service(obj["config_path"], obj["profile"], obj["verbose"])

    async def _run() -> bool:
        try:
            return await service.test_connection()
        finally:
            await service.aclose()

    if asyncio.run(_run()):
        console.print("[green]OK[/green]")
    else:
        console.print("[red]FAIL[/red]")
        sys.exit(1)
