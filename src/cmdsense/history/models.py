"""Data models for shell history."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from functools import total_ordering

from pydantic import BaseModel, ConfigDict


class ShellType(str, Enum):
    """Shells whose history files can be read."""

    ZSH = "zsh"
    BASH = "bash"
    FISH = "fish"
    UNKNOWN = "unknown"


class HistoryEntry(BaseModel):
    """A single command parsed from a history file."""

    model_config = ConfigDict(frozen=True)

    command: str
    timestamp: datetime | None = None


@total_ordering
class CommandFrequency(BaseModel):
    """Aggregated usage of one command.

    Sorting a list of frequencies puts the most used command first; ties go
    to the most recently used, and entries with a timestamp come before
    entries without one.

    Attributes:
        command: Normalized command text.
        count: Number of times the command appears in history.
        last_used: Most recent use, when the shell records timestamps.
    """

    model_config = ConfigDict(frozen=True)

    command: str
    count: int
    last_used: datetime | None = None

    def _sort_key(self) -> tuple[int, int, float]:
        stamp = self.last_used.timestamp() if self.last_used is not None else 0.0
        return (-self.count, 0 if self.last_used is not None else 1, -stamp)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CommandFrequency):
            return NotImplemented
        return self._sort_key() < other._sort_key()
