"""Click CLI: loads config, wires the engine, and runs the chat loop."""

import asyncio
import logging
import random
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from rechenbot.healthcheck import check_store
from rechenbot.intents import IntentMatcher
from rechenbot.models import Message
from rechenbot.output import export_markdown, render_message, render_transcript
from rechenbot.resolver import ResponseResolver
from rechenbot.scheduler import TurnScheduler
from rechenbot.storage import FileKeyValueStore, KeyValueStore
from rechenbot.transcript import TranscriptStore

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_EXIT_WORDS = {"exit", "quit", ":q"}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_resolver(config: AppConfig, seed: int | None) -> ResponseResolver:
    rng = random.Random(seed)
    matcher = IntentMatcher(config.intents, rng=rng)
    return ResponseResolver(
        matcher,
        success_template=config.messages.success,
        fallback=config.messages.fallback,
    )


def _build_transcript(config: AppConfig, store: KeyValueStore) -> TranscriptStore:
    def on_change(snapshot: tuple[Message, ...]) -> None:
        render_message(snapshot[-1])

    return TranscriptStore(
        store,
        key=config.chat.storage_key,
        greeting=config.messages.greeting,
        on_change=on_change,
    )


def _check_store(store: KeyValueStore, key: str) -> None:
    ok, err = check_store(store, key)
    if not ok:
        console.print(
            f"[yellow]Warning:[/yellow] chat history cannot be saved ({err}). "
            "Continuing without persistence."
        )


async def _run_once(scheduler: TurnScheduler, text: str) -> None:
    scheduler.submit(text)
    await scheduler.close()


async def _run_interactive(scheduler: TurnScheduler) -> None:
    """Read lines until EOF or an exit word; replies arrive behind the delay."""
    scheduler.start()
    while True:
        try:
            line = await asyncio.to_thread(input)
        except (EOFError, KeyboardInterrupt):
            break
        if line.strip().lower() in _EXIT_WORDS:
            break
        scheduler.submit(line)
    await scheduler.close()


@click.command()
@click.argument("message", required=False)
@click.option("--delay", type=float, default=None, help="Thinking delay in seconds (default: from config)")
@click.option("--store-dir", default=None, help="Directory for the chat history (default: from config)")
@click.option("--settings", "settings_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Path to settings.yaml")
@click.option("--seed", type=int, default=None, help="Seed for randomly chosen replies")
@click.option("--reset", is_flag=True, help="Clear the saved history before starting")
@click.option("--export", "export_path", default=None, help="Write the history as markdown and exit")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the history store write check at startup")
def main(
    message: str | None,
    delay: float | None,
    store_dir: str | None,
    settings_path: str | None,
    seed: int | None,
    reset: bool,
    export_path: str | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """Rechenbot -- a small chat assistant for arithmetic.

    \b
    Examples:
      python -m rechenbot.cli
      python -m rechenbot.cli "(10+2)/3"
      python -m rechenbot.cli --reset
      python -m rechenbot.cli --export verlauf.md
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(Path(settings_path)) if settings_path else load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    effective_delay = delay if delay is not None else config.chat.delay_sec
    effective_store_dir = Path(store_dir) if store_dir else config.chat.store_dir
    effective_seed = seed if seed is not None else config.chat.seed

    store = FileKeyValueStore(effective_store_dir)
    if not skip_health_check:
        _check_store(store, config.chat.storage_key)

    transcript = _build_transcript(config, store)
    transcript.load()

    if export_path:
        saved = export_markdown(transcript.all(), Path(export_path))
        console.print(f"[dim]Saved to: {saved}[/dim]")
        return

    if reset:
        transcript.reset()
    elif not message:
        render_transcript(transcript.all())

    scheduler = TurnScheduler(
        _build_resolver(config, effective_seed),
        transcript,
        delay_sec=effective_delay,
    )

    if message:
        asyncio.run(_run_once(scheduler, message))
        return

    console.print("[dim]Tippe eine Nachricht, 'exit' beendet.[/dim]")
    asyncio.run(_run_interactive(scheduler))


if __name__ == "__main__":
    main()
