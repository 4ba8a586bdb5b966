"""Configuration CLI commands."""

from pathlib import Path

import click

from cmdsense.cli.main import cli
from cmdsense.config.loader import ENV_MAPPINGS, get_config_paths
from cmdsense.config.settings import Settings

# Placeholder shown for settings left unset
_UNSET_LABELS = {
    ("logging", "file"): "(default)",
    ("history", "file"): "(auto-detect)",
}


def _status(path: Path) -> str:
    return "[exists]" if path.exists() else "[not found]"


@cli.group()
def config() -> None:
    """Inspect configuration."""


@config.command()
@click.pass_obj
def show(settings: Settings) -> None:
    """Show the effective configuration after all overrides."""
    click.echo("Current Configuration:")
    click.echo("=" * 40)
    for section, values in settings.model_dump().items():
        click.echo(f"\n[{section}]")
        for key, value in values.items():
            if value is None:
                value = _UNSET_LABELS.get((section, key), "(unset)")
            click.echo(f"  {key}: {value}")


@config.command()
def path() -> None:
    """Show where configuration is read from, in override order."""
    user_config, project_config = get_config_paths()

    click.echo("Configuration File Paths:")
    click.echo("=" * 60)
    click.echo(f"\nUser config:    {user_config} {_status(user_config)}")
    click.echo(f"Project config: {project_config} {_status(project_config)}")

    click.echo("\nPriority (highest to lowest):")
    click.echo(f"  1. Environment variables ({', '.join(ENV_MAPPINGS)})")
    click.echo("  2. Project config (.cmdsense/config.toml)")
    click.echo("  3. User config (~/.config/cmdsense/config.toml)")
    click.echo("  4. Defaults")


__all__ = ["config"]
