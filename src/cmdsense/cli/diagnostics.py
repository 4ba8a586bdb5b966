"""Diagnostic commands for troubleshooting."""

from pathlib import Path

import click

from cmdsense.cli.main import cli
from cmdsense.config.settings import Settings


@cli.command()
@click.option("--days", default=7, help="Include logs from last N days")
@click.pass_obj
def logs(settings: Settings, days: int) -> None:
    """Show log file locations."""
    from cmdsense.core.logging import get_log_file, get_log_files

    log_path = Path(settings.logging.file).expanduser() if settings.logging.file else get_log_file()
    status = "[exists]" if log_path.exists() else "[not found]"
    click.echo(f"Log file: {log_path} {status}")
    click.echo(f"Level: {settings.logging.level}")

    rotated = [p for p in get_log_files(days=days) if p != log_path]
    if rotated:
        click.echo(f"\nRotated logs (last {days} days):")
        for p in rotated:
            click.echo(f"  {p.name} ({p.stat().st_size} bytes)")

    click.echo(f"\nTo tail logs: tail -f {log_path}")


__all__ = ["logs"]
