"""Shell history reading and command frequency aggregation."""

from cmdsense.history.models import CommandFrequency, HistoryEntry, ShellType
from cmdsense.history.parser import (
    ShellHistoryReader,
    default_history_path,
    detect_shell_type,
    find_history_file,
    frequent_commands,
    normalize_command,
    parse_history,
)

__all__ = [
    "CommandFrequency",
    "HistoryEntry",
    "ShellHistoryReader",
    "ShellType",
    "default_history_path",
    "detect_shell_type",
    "find_history_file",
    "frequent_commands",
    "normalize_command",
    "parse_history",
]
