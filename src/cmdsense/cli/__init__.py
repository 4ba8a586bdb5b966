"""CLI package for cmdsense."""

from cmdsense.cli.main import cli

# Import subcommand modules to trigger command registration
from cmdsense.cli import config  # noqa: F401
from cmdsense.cli import diagnostics  # noqa: F401

__all__ = ["cli"]
