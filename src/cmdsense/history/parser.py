"""Read shell history files and aggregate command frequencies."""

from __future__ import annotations

import os
import re
import time
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from pathlib import Path

from cmdsense.core.logging import logger
from cmdsense.history.models import CommandFrequency, HistoryEntry, ShellType

# Upper bound on entries considered, counted from the end of the file
MAX_ENTRIES = 10_000

CACHE_EXPIRATION_SECONDS = 300.0

# Commands too generic to be worth suggesting from history
TRIVIAL_COMMANDS = frozenset(
    {
        "cd", "ls", "ll", "la", "pwd", "clear", "exit", "quit",
        "history", "which", "whoami", "date", "cal", "true", "false",
        "echo", "printf", "cat", "less", "more", "head", "tail",
        "man", "help", "alias", "unalias", "export", "source",
    }
)  # fmt: skip

_ZSH_EXTENDED_RE = re.compile(r"^: (\d+):\d+;(.*)$", re.DOTALL)
_BASH_TIMESTAMP_RE = re.compile(r"^#(\d{9,})$")


def detect_shell_type(env: Mapping[str, str] | None = None) -> ShellType:
    """Detect the user's shell from ``$SHELL``."""
    env = os.environ if env is None else env
    shell_path = env.get("SHELL")
    if not shell_path:
        return ShellType.UNKNOWN

    name = Path(shell_path).name.lower()
    for shell in (ShellType.ZSH, ShellType.BASH, ShellType.FISH):
        if shell.value in name:
            return shell
    return ShellType.UNKNOWN


def default_history_path(
    shell: ShellType,
    home: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Return the conventional history file location for ``shell``."""
    home = Path.home() if home is None else home
    env = os.environ if env is None else env

    if shell == ShellType.ZSH:
        histfile = env.get("HISTFILE")
        return Path(histfile).expanduser() if histfile else home / ".zsh_history"
    if shell == ShellType.BASH:
        return home / ".bash_history"
    if shell == ShellType.FISH:
        return home / ".local" / "share" / "fish" / "fish_history"
    return home / ".histfile"


def find_history_file(
    home: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[Path, ShellType] | None:
    """Locate an existing history file, trying the detected shell first.

    Returns:
        The history path and the shell format it is written in, or None.
    """
    home = Path.home() if home is None else home
    shell = detect_shell_type(env)

    candidates = [(default_history_path(shell, home, env), shell)]
    candidates += [
        (home / ".zsh_history", ShellType.ZSH),
        (home / ".bash_history", ShellType.BASH),
        (home / ".histfile", ShellType.ZSH),
    ]
    for path, path_shell in candidates:
        if path.is_file():
            logger.debug(f"Found history file at {path}")
            return path, path_shell

    logger.info("No shell history file found")
    return None


def _from_epoch(value: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def _join_continuations(lines: Iterable[str]) -> list[str]:
    joined: list[str] = []
    pending = ""
    for line in lines:
        if line.endswith("\\"):
            pending += line[:-1] + "\n"
            continue
        joined.append(pending + line)
        pending = ""
    if pending:
        joined.append(pending.rstrip("\n"))
    return joined


def _parse_zsh(text: str) -> list[HistoryEntry]:
    entries: list[HistoryEntry] = []
    for line in _join_continuations(text.splitlines()):
        match = _ZSH_EXTENDED_RE.match(line)
        if match:
            entries.append(HistoryEntry(command=match.group(2), timestamp=_from_epoch(match.group(1))))
        elif line.strip():
            entries.append(HistoryEntry(command=line))
    return entries


def _parse_bash(text: str) -> list[HistoryEntry]:
    entries: list[HistoryEntry] = []
    timestamp: datetime | None = None
    for line in text.splitlines():
        match = _BASH_TIMESTAMP_RE.match(line)
        if match:
            timestamp = _from_epoch(match.group(1))
            continue
        if line.strip():
            entries.append(HistoryEntry(command=line, timestamp=timestamp))
        timestamp = None
    return entries


def _parse_fish(text: str) -> list[HistoryEntry]:
    entries: list[HistoryEntry] = []
    command: str | None = None
    timestamp: datetime | None = None

    for line in text.splitlines():
        if line.startswith("- cmd: "):
            if command is not None:
                entries.append(HistoryEntry(command=command, timestamp=timestamp))
            command = line[len("- cmd: ") :].replace("\\n", "\n").replace("\\\\", "\\")
            timestamp = None
        elif line.startswith("  when: ") and command is not None:
            timestamp = _from_epoch(line[len("  when: ") :].strip())

    if command is not None:
        entries.append(HistoryEntry(command=command, timestamp=timestamp))
    return entries


def parse_history(text: str, shell: ShellType) -> list[HistoryEntry]:
    """Parse history file contents written by ``shell``.

    Unknown shells are read as zsh, which also accepts plain one-command-per-line
    files. Only the last MAX_ENTRIES entries are returned.
    """
    if shell == ShellType.FISH:
        entries = _parse_fish(text)
    elif shell == ShellType.BASH:
        entries = _parse_bash(text)
    else:
        entries = _parse_zsh(text)
    return entries[-MAX_ENTRIES:]


def normalize_command(command: str) -> str:
    """Collapse runs of whitespace so equivalent commands aggregate together."""
    return " ".join(command.split())


def _is_trivial(command: str) -> bool:
    if len(command) < 2:
        return True
    base, _, args = command.partition(" ")
    if base.lower() in TRIVIAL_COMMANDS and not args:
        return True
    return base == "cd" and args in ("~", "-", "..", ".")


def frequent_commands(entries: Iterable[HistoryEntry], limit: int = 10) -> list[CommandFrequency]:
    """Aggregate history entries into the most frequent non-trivial commands.

    Args:
        entries: Parsed history entries in file order.
        limit: Maximum number of frequencies to return.

    Returns:
        Frequencies sorted most-used first.
    """
    counts: dict[str, tuple[int, datetime | None]] = {}
    for entry in entries:
        command = normalize_command(entry.command)
        if _is_trivial(command):
            continue
        count, last_used = counts.get(command, (0, None))
        if entry.timestamp is not None and (last_used is None or entry.timestamp > last_used):
            last_used = entry.timestamp
        counts[command] = (count + 1, last_used)

    frequencies = sorted(
        CommandFrequency(command=command, count=count, last_used=last_used)
        for command, (count, last_used) in counts.items()
    )
    return frequencies[:limit]


class ShellHistoryReader:
    """Read and cache command frequencies from the user's history file.

    Attributes:
        history_file: Explicit history file; located automatically when None.
        shell: Format of ``history_file``; detected from ``$SHELL`` when None.
        cache_expiration: Seconds before the parsed history is re-read.
    """

    def __init__(
        self,
        history_file: Path | None = None,
        shell: ShellType | None = None,
        cache_expiration: float = CACHE_EXPIRATION_SECONDS,
    ) -> None:
        self.history_file = history_file
        self.shell = shell
        self.cache_expiration = cache_expiration
        self._cached: list[CommandFrequency] = []
        self._cached_at: float | None = None

    def _resolve(self) -> tuple[Path, ShellType] | None:
        if self.history_file is None:
            return find_history_file()
        if not self.history_file.is_file():
            logger.warning(f"History file not found: {self.history_file}")
            return None
        return self.history_file, self.shell or detect_shell_type()

    def _load(self) -> list[CommandFrequency]:
        located = self._resolve()
        if located is None:
            return []

        path, shell = located
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Could not read history file {path}: {e}")
            return []

        entries = parse_history(text, shell)
        logger.info(f"Parsed {len(entries)} history entries from {path} ({shell.value})")
        return frequent_commands(entries, limit=MAX_ENTRIES)

    def get_frequent_commands(self, limit: int = 10) -> list[CommandFrequency]:
        """Return the ``limit`` most frequent commands, re-reading when stale."""
        now = time.monotonic()
        if self._cached_at is None or now - self._cached_at >= self.cache_expiration:
            self._cached = self._load()
            self._cached_at = now
        return self._cached[:limit]

    def clear_cache(self) -> None:
        self._cached = []
        self._cached_at = None
