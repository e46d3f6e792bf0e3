"""Command-line interface for the Zoya assistant.

Provides commands for configuration validation, the API server, one-off
commands and database setup.

Usage:
    python -m zoya validate-config
    python -m zoya serve --port 8000
    python -m zoya ask "add a task to call mom"
    python -m zoya init-db --db-path data/zoya.db
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from zoya.config import config_path as resolve_config_path
from zoya.config import validate_config_file
from zoya.core.logging import configure_logging

console = Console()

_STATUS_STYLES = {
    "completed": "green",
    "processed": "cyan",
    "failed": "red",
}


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """Zoya - multilingual personal assistant."""
    log_level = "DEBUG" if debug else "INFO"
    configure_logging(log_level=log_level, json_output=False)


@cli.command("validate-config")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Config file (default: $ZOYA_CONFIG_PATH or config/config.yaml)",
)
def validate_config(config_path: Path | None) -> None:
    """Check config.yaml against the settings schema.

    Exits 0 when valid, 1 with one line per invalid field otherwise.
    ZOYA_* environment overrides are applied before validation.
    """
    path = config_path or resolve_config_path()
    console.print(f"Validating [cyan]{path}[/cyan]")

    is_valid, message = validate_config_file(path)

    mark = "[green]✓[/green]" if is_valid else "[red]✗[/red]"
    console.print(f"\n{mark} {message}")
    sys.exit(0 if is_valid else 1)


@cli.command("serve")
@click.option("--host", default=None, help="Host to bind to (default: server.host from config)")
@click.option("--port", default=None, type=int, help="Port to listen on (default: server.port)")
def serve(host: str | None, port: int | None) -> None:
    """Start the API server and the /ws push channel."""
    import uvicorn

    from zoya.config import get_config_or_default
    from zoya.core.errors import ConfigValidationError
    from zoya.web.app import create_app

    try:
        config = get_config_or_default()
    except ConfigValidationError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(1)

    host = host or config.server.host
    port = port or config.server.port

    if host == "0.0.0.0":  # noqa: S104
        console.print(
            "[yellow]Warning:[/yellow] Binding to 0.0.0.0 exposes the server to the network.\n"
            "This app has no authentication. Use 127.0.0.1 for local-only access."
        )

    configure_logging(log_level=config.logging.level, json_output=config.logging.json_output)

    app = create_app()
    console.print(f"Starting server on [cyan]http://{host}:{port}[/cyan]")
    uvicorn.run(app, host=host, port=port, log_level="info")


@cli.command("ask")
@click.argument("text")
@click.option(
    "--language",
    type=click.Choice(["en", "ur", "roman-ur"]),
    default=None,
    help="Language hint (default: detected from the text)",
)
@click.option("--voice", is_flag=True, help="Record the command as voice input")
def ask(text: str, language: str | None, voice: bool) -> None:
    """Run one command through the classifier and executor.

    Uses the configured store; with the memory backend nothing outlives
    the process.
    """
    try:
        asyncio.run(_run_ask(text, language, "voice" if voice else "text"))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}")
        sys.exit(1)


async def _run_ask(text: str, language: str | None, input_type: str) -> None:
    """Async implementation of the ask command."""
    from zoya.classifier.command_classifier import CommandClassifier
    from zoya.classifier.language import detect_language
    from zoya.classifier.provider import AvailabilityState, build_client
    from zoya.classifier.summarizer import EmailSummarizer
    from zoya.config import get_config_or_default
    from zoya.db.factory import create_store
    from zoya.engine.executor import CommandExecutor

    config = get_config_or_default()
    language = language or detect_language(text)

    store = await create_store(config)
    client = build_client(config.classifier)
    availability = AvailabilityState(cooldown_seconds=config.classifier.cooldown_seconds)
    executor = CommandExecutor(
        store,
        CommandClassifier(client, config.classifier, availability),
        EmailSummarizer(client, config.classifier, availability),
        tz=config.tzinfo,
    )

    try:
        outcome = await executor.execute(text, language, input_type)
    finally:
        await store.close()
        if client is not None:
            await client.close()

    console.print(f"\n{outcome.response_text}\n")

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Action", outcome.intent.action)
    table.add_row("Confidence", f"{outcome.intent.confidence:.2f}")
    table.add_row("Language", outcome.language)
    style = _STATUS_STYLES.get(outcome.status, "white")
    table.add_row("Status", f"[{style}]{outcome.status}[/{style}]")
    console.print(table)


@cli.command("init-db")
@click.option(
    "--db-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Database file (default: storage.db_path from config)",
)
def init_db(db_path: Path | None) -> None:
    """Create the durable tables (tasks, command_history)."""
    from zoya.config import get_config_or_default
    from zoya.core.errors import StorageUnavailableError
    from zoya.db.models import init_database

    if db_path is None:
        db_path = Path(get_config_or_default().storage.db_path)

    try:
        asyncio.run(init_database(db_path))
    except StorageUnavailableError as e:
        console.print(f"[red]Database error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Database ready at [cyan]{db_path}[/cyan]")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
