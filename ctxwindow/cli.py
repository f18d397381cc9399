"""CLI entry point for ctxwindow"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ctxwindow.config.config import Config
from ctxwindow.config.schema import ContextWindowOptions
from ctxwindow.errors import ModelNotFoundError, TokenCalculationError
from ctxwindow.provider.router import ModelRouter
from ctxwindow.session.context import ContextWindowManager
from ctxwindow.session.message import Message
from ctxwindow.session.truncate import TruncationLevel, estimate_message_tokens, progressive_truncation

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

console = Console(stderr=True)

app = typer.Typer(
    name="ctxwindow",
    help="Fit chat conversations into a model's context window",
    add_completion=False,
)


def _load_messages(path: Path) -> list[Message]:
    """Read a JSON list of messages, or an object with a "messages" list"""
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read messages from {path}: {e}[/red]")
        raise typer.Exit(1)

    if isinstance(data, dict):
        data = data.get("messages", [])

    if not isinstance(data, list):
        console.print(f"[red]Expected a list of messages in {path}[/red]")
        raise typer.Exit(1)

    try:
        return [Message.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        console.print(f"[red]Malformed message in {path}: {e}[/red]")
        raise typer.Exit(1)


def _build_manager(config_path: Optional[Path], **overrides) -> ContextWindowManager:
    config = Config.load(config_path)
    changes = {k: v for k, v in overrides.items() if v is not None}
    try:
        options = ContextWindowOptions.model_validate({**config.context.model_dump(), **changes})
    except ValidationError as e:
        console.print(f"[red]Invalid options:[/red] {e}")
        raise typer.Exit(2)
    return ContextWindowManager(router=ModelRouter.from_config(config), options=options)


@app.command()
def prepare(
    file: Path = typer.Argument(..., help="JSON file with the conversation"),
    model: str = typer.Option(..., "--model", "-m", help="Model the conversation is prepared for"),
    summarization_model: str = typer.Option(None, "--summarization-model", "-s", help="Model that writes summaries"),
    reserved_tokens: int = typer.Option(None, "--reserved-tokens", help="Headroom kept free for the response"),
    max_before_summarization: int = typer.Option(
        None, "--max-before-summarization", help="Token count above which older turns are summarized",
    ),
    ratio: float = typer.Option(None, "--ratio", help="Fraction of older turns folded into the summary"),
    debug: bool = typer.Option(False, "--debug", help="Log every decision"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Prepare a conversation and print the result as JSON"""
    if debug:
        logging.getLogger("ctxwindow").setLevel(logging.DEBUG)

    messages = _load_messages(file)
    manager = _build_manager(
        config_path,
        summarization_model=summarization_model,
        reserved_tokens=reserved_tokens,
        max_tokens_before_summarization=max_before_summarization,
        summarization_ratio=ratio,
        debug=debug or None,
    )

    errors = []
    manager.on_error(lambda event: errors.append(event.to_dict()))

    try:
        result = asyncio.run(manager.prepare_messages(messages, model))
    except ModelNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    output = result.to_dict()
    output["errors"] = errors
    typer.echo(json.dumps(output, indent=2))


@app.command()
def count(
    file: Path = typer.Argument(..., help="JSON file with the conversation"),
    model: str = typer.Option(..., "--model", "-m", help="Model to count tokens for"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Print the total token count of a conversation"""
    messages = _load_messages(file)
    manager = _build_manager(config_path)

    try:
        total = asyncio.run(manager.calculate_total_tokens(messages, model))
    except TokenCalculationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    typer.echo(str(total))


@app.command()
def trim(
    file: Path = typer.Argument(..., help="JSON file with the conversation"),
    max_tokens: int = typer.Option(..., "--max-tokens", "-t", help="Heuristic token budget"),
    level: TruncationLevel = typer.Option(TruncationLevel.LIGHT, "--level", "-l", help="Level to start escalating from"),
):
    """Truncate offline with the character heuristic, escalating until it fits"""
    messages = _load_messages(file)
    trimmed, applied = progressive_truncation(messages, max_tokens, level)

    typer.echo(json.dumps({
        "messages": [m.to_dict() for m in trimmed],
        "level": applied.value,
        "estimated_tokens": estimate_message_tokens(trimmed),
    }, indent=2))


@app.command()
def models(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """List known models and their context windows"""
    router = ModelRouter.from_config(Config.load(config_path))

    table = Table(title="Models")
    table.add_column("ID", style="cyan")
    table.add_column("Provider")
    table.add_column("Context window", justify="right")
    table.add_column("Name", style="dim")

    for profile in router.registry.list_models():
        table.add_row(
            profile.id,
            profile.provider,
            f"{profile.context_window_tokens:,}",
            profile.display_name or "",
        )

    Console().print(table)


def main():
    app()


if __name__ == "__main__":
    main()
