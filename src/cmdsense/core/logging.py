"""Logging for cmdsense, built on loguru.

cmdsense runs next to an interactive shell, so nothing is ever written to
stderr. Modules log through the shared ``logger``; records stay disabled until
the CLI (or an embedding application) calls :func:`setup_logging`, which adds a
rotating file sink under ~/.local/share/cmdsense/logs/.
"""

import re
import time
from pathlib import Path

from loguru import logger

DEFAULT_LOG_DIR = Path("~/.local/share/cmdsense/logs").expanduser()
DEFAULT_LOG_FILE = DEFAULT_LOG_DIR / "cmdsense.log"

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR"})

# Rotated files look like cmdsense.2024-05-01_10-00-00_000000.log.gz
_ROTATED_RE = re.compile(r"^cmdsense\..+\.log(\.gz)?$")

_SECRET_ASSIGNMENT_RE = re.compile(r"\b([A-Z0-9_]*(?:TOKEN|SECRET|PASSWORD|API_KEY)[A-Z0-9_]*=)\S+")

logger.disable("cmdsense")

# Handler id of the file sink owned by setup_logging, or None before setup
_file_sink: int | None = None


def get_log_dir() -> Path:
    return DEFAULT_LOG_DIR


def get_log_file() -> Path:
    return DEFAULT_LOG_FILE


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = "5 MB",
    retention: str = "7 days",
    compression: str = "gz",
) -> Path:
    """Send cmdsense records to a rotating log file.

    Calling this again replaces the file sink from the previous call, so the
    level or destination can be changed at runtime.

    Args:
        level: DEBUG, INFO, WARNING or ERROR, in any case.
        log_file: Destination; ``~`` is expanded. Defaults to DEFAULT_LOG_FILE.
        rotation: Size or age at which the file is rotated.
        retention: How long rotated files are kept.
        compression: Archive format for rotated files.

    Returns:
        The resolved log file path.

    Raises:
        ValueError: For an unrecognized level.
    """
    global _file_sink

    normalized = level.upper()
    if normalized not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level '{level}'. Valid levels are: {', '.join(sorted(VALID_LOG_LEVELS))}")

    path = Path(log_file).expanduser() if log_file is not None else DEFAULT_LOG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    if _file_sink is None:
        # First setup also drops loguru's stderr handler
        logger.remove()
    else:
        logger.remove(_file_sink)

    _file_sink = logger.add(
        path,
        level=normalized,
        format=LOG_FORMAT,
        rotation=rotation,
        retention=retention,
        compression=compression,
        enqueue=True,
    )
    logger.enable("cmdsense")
    logger.info(f"Logging initialized at {normalized} level to {path}")
    return path


def disable_logging() -> None:
    logger.disable("cmdsense")


def enable_logging() -> None:
    logger.enable("cmdsense")


def reset_logging() -> None:
    """Remove every handler and forget the file sink (used by tests)."""
    global _file_sink
    logger.remove()
    _file_sink = None


def redact_sensitive(content: str) -> str:
    """Mask secrets and the home directory before log content is shared.

    Shell commands often carry credentials as ``NAME=value`` prefixes; the
    value of any such assignment whose name mentions a token, secret, password
    or API key is replaced with ``[REDACTED]``.
    """
    content = _SECRET_ASSIGNMENT_RE.sub(r"\1[REDACTED]", content)
    try:
        home = str(Path.home())
    except RuntimeError:
        return content
    return content.replace(home, "~")


def get_log_files(days: int = 7) -> list[Path]:
    """Return the current log and rotated logs touched in the last ``days`` days.

    Newest files come first.
    """
    log_dir = get_log_dir()
    if not log_dir.is_dir():
        return []

    cutoff = time.time() - days * 86400
    recent: list[tuple[float, Path]] = []
    for path in log_dir.iterdir():
        if path.name != "cmdsense.log" and not _ROTATED_RE.match(path.name):
            continue
        mtime = path.stat().st_mtime
        if mtime >= cutoff:
            recent.append((mtime, path))

    return [path for _, path in sorted(recent, reverse=True)]


__all__ = [
    "DEFAULT_LOG_DIR",
    "DEFAULT_LOG_FILE",
    "LOG_FORMAT",
    "VALID_LOG_LEVELS",
    "disable_logging",
    "enable_logging",
    "get_log_dir",
    "get_log_file",
    "get_log_files",
    "logger",
    "redact_sensitive",
    "reset_logging",
    "setup_logging",
]
