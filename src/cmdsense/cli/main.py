"""Root CLI group and core commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TextIO

import click
from rich.console import Console
from rich.table import Table

from cmdsense.config.loader import load_config
from cmdsense.config.settings import ConfigValidationError, Settings
from cmdsense.context.detection import EnvironmentContextProvider
from cmdsense.context.models import EnvironmentContext
from cmdsense.core.logging import setup_logging
from cmdsense.history.parser import ShellHistoryReader
from cmdsense.suggestions.classifier import classify, filter_for_current_context, is_relevant_in_directory
from cmdsense.suggestions.models import ProjectSpecific
from cmdsense.suggestions.parsing import parse_suggestions
from cmdsense.suggestions.validation import validate_suggestions_for_cwd

cwd_option = click.option(
    "--cwd",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Working directory to evaluate against (defaults to the current directory)",
)


@click.group()
@click.version_option(package_name="cmdsense")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """cmdsense - terminal command intelligence."""
    try:
        settings = asyncio.run(load_config())
    except ConfigValidationError as e:
        raise click.ClickException(str(e)) from None

    setup_logging(level=settings.logging.level, log_file=settings.logging.file)
    ctx.obj = settings


def _environment(settings: Settings, cwd: Path | None) -> EnvironmentContext:
    provider = EnvironmentContextProvider(
        cache_ttl=settings.context.cache_ttl,
        cache_size=settings.context.cache_size,
    )
    return asyncio.run(provider.get_environment_context((cwd or Path.cwd()).resolve()))


@cli.command()
@click.argument("path", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the environment context as JSON")
@click.pass_obj
def detect(settings: Settings, path: Path | None, as_json: bool) -> None:
    """Detect the technology stack of a directory."""
    env = _environment(settings, path)

    if as_json:
        click.echo(env.model_dump_json(indent=2))
        return

    click.echo(f"Directory:    {env.cwd}")
    click.echo(f"Technologies: {', '.join(env.technologies) or 'unknown'}")
    click.echo(f"Project type: {env.project_type.value}")
    if env.git_info is not None:
        git = env.git_info
        parts = [f"branch={git.branch or '?'}"]
        if git.is_dirty:
            parts.append("dirty")
        if git.ahead:
            parts.append(f"{git.ahead} to push")
        if git.behind:
            parts.append(f"{git.behind} to pull")
        click.echo(f"Git:          {', '.join(parts)}")

    if env.project_type.common_commands:
        click.echo("\nCommon commands:")
        for common in env.project_type.common_commands:
            click.echo(f"  {common.command:<34} {common.reason}")


@cli.command("classify")
@click.argument("command", nargs=-1, required=True)
@cwd_option
@click.pass_obj
def classify_command(settings: Settings, command: tuple[str, ...], cwd: Path | None) -> None:
    """Classify a command by how portable it is across directories."""
    text = " ".join(command)
    env = _environment(settings, cwd)

    classification = classify(text, env.cwd)
    label = classification.kind
    if isinstance(classification, ProjectSpecific):
        label += f" ({classification.requires.value})"

    relevant = is_relevant_in_directory(text, env.cwd, env)
    click.echo(f"{text}: {label}")
    click.echo(f"Relevant in {env.cwd}: {'yes' if relevant else 'no'}")


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_file",
    type=click.File("r", encoding="utf-8", errors="replace"),
    default="-",
    help="File holding raw model output (defaults to stdin)",
)
@cwd_option
@click.option("--json", "as_json", is_flag=True, help="Print suggestions as JSON")
@click.pass_obj
def suggest(settings: Settings, input_file: TextIO, cwd: Path | None, as_json: bool) -> None:
    """Extract and vet command suggestions from raw model output."""
    raw_text = input_file.read()
    env = _environment(settings, cwd)

    suggestions = validate_suggestions_for_cwd(parse_suggestions(raw_text), env.cwd, env)

    if as_json:
        click.echo(json.dumps([s.model_dump(mode="json") for s in suggestions], indent=2))
        return

    if not suggestions:
        click.echo("No suggestions.")
        return
    for suggestion in suggestions:
        click.echo(f"{suggestion.command:<34} # {suggestion.reason}")


@cli.command()
@cwd_option
@click.option("--limit", "-n", type=click.IntRange(1, 100), default=None, help="Number of commands to show")
@click.option(
    "--file",
    "-f",
    "history_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="History file to read",
)
@click.option("--all", "show_all", is_flag=True, help="Do not filter by the current directory")
@click.pass_obj
def history(
    settings: Settings,
    cwd: Path | None,
    limit: int | None,
    history_file: Path | None,
    show_all: bool,
) -> None:
    """Show frequently used commands that apply in this directory."""
    limit = limit or settings.history.limit
    if history_file is None and settings.history.file:
        history_file = Path(settings.history.file).expanduser()

    frequencies = ShellHistoryReader(history_file=history_file).get_frequent_commands(limit=10_000)
    if not show_all:
        env = _environment(settings, cwd)
        frequencies = filter_for_current_context(frequencies, env.cwd, env)
    frequencies = frequencies[:limit]

    if not frequencies:
        click.echo("No matching commands in shell history.")
        return

    table = Table(title="Frequent commands")
    table.add_column("Command", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Last used")
    for freq in frequencies:
        last_used = freq.last_used.strftime("%Y-%m-%d %H:%M") if freq.last_used else "-"
        table.add_row(freq.command, str(freq.count), last_used)
    Console().print(table)


__all__ = ["cli"]
