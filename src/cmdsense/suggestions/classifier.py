"""Classify shell commands by how tightly they are bound to a directory.

Classification is a pure function of the command text, the working directory
and the immutable tables below, so it is safe to call from any thread.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from cmdsense.context.models import EnvironmentContext, ProjectType
from cmdsense.history.models import CommandFrequency
from cmdsense.suggestions.models import (
    AMBIGUOUS,
    PATH_DEPENDENT,
    UNIVERSAL,
    CommandContextType,
    ProjectSpecific,
    VersionControl,
)

UNIVERSAL_COMMANDS = frozenset(
    {
        "ls", "ll", "la", "pwd", "clear", "whoami", "date", "cal", "uptime",
        "which", "where", "type", "alias", "history", "env", "printenv",
        "echo", "cat", "less", "more", "head", "tail", "wc",
        "grep", "find", "locate", "tree", "du", "df",
        "ps", "top", "htop", "kill", "killall",
        "ssh", "scp", "rsync", "curl", "wget", "ping",
        "man", "help", "tldr", "brew", "apt", "yum", "pacman",
        "code", "vim", "nvim", "nano", "emacs", "subl",
        "open", "pbcopy", "pbpaste", "say",
    }
)  # fmt: skip

READ_ONLY_GIT_SUBCOMMANDS = frozenset(
    {"status", "log", "diff", "show", "branch", "remote", "config", "help", "version"}
)

PROJECT_COMMANDS: dict[str, ProjectType] = {
    "npm": ProjectType.NODE,
    "npx": ProjectType.NODE,
    "yarn": ProjectType.NODE,
    "pnpm": ProjectType.NODE,
    "node": ProjectType.NODE,
    "bun": ProjectType.NODE,
    "swift": ProjectType.SWIFT,
    "cargo": ProjectType.RUST,
    "rustc": ProjectType.RUST,
    "python": ProjectType.PYTHON,
    "python3": ProjectType.PYTHON,
    "pip": ProjectType.PYTHON,
    "pip3": ProjectType.PYTHON,
    "pytest": ProjectType.PYTHON,
    "poetry": ProjectType.PYTHON,
    "pipenv": ProjectType.PYTHON,
    "go": ProjectType.GO,
    "bundle": ProjectType.RUBY,
    "rails": ProjectType.RUBY,
    "rake": ProjectType.RUBY,
    "gem": ProjectType.RUBY,
    "mvn": ProjectType.JAVA,
    "gradle": ProjectType.JAVA,
    "gradlew": ProjectType.JAVA,
    "./gradlew": ProjectType.JAVA,
    "dotnet": ProjectType.DOTNET,
}

# name.ext where ext is alphanumeric, e.g. "file.txt", "src/app.config.json"
_FILENAME_RE = re.compile(r"(?:^|/)[^/]*[^/.]\.[A-Za-z0-9]+$")


def _tokens(command: str) -> list[str]:
    return command.strip().split()


def _is_path_token(token: str) -> bool:
    return "/" in token and "://" not in token


def _looks_like_filename(token: str) -> bool:
    if token.startswith("-") or "://" in token:
        return False
    return bool(_FILENAME_RE.search(token))


def _classify_cd(args: Sequence[str]) -> CommandContextType:
    if not args:
        return UNIVERSAL
    target = " ".join(args)
    if target == "-" or target.startswith("~") or target.startswith("/"):
        return UNIVERSAL
    return PATH_DEPENDENT


def _classify_git(args: Sequence[str]) -> CommandContextType:
    if not args or args[0] in READ_ONLY_GIT_SUBCOMMANDS:
        return UNIVERSAL
    return ProjectSpecific(requires=VersionControl.GIT)


def classify(command: str, cwd: str = "") -> CommandContextType:
    """Classify a command string by its context sensitivity.

    Rules are applied in order: ``cd`` and ``git`` special cases, the universal
    allow-list, the project command table, path-bearing detection, and finally
    the ambiguous fallback.

    Args:
        command: The raw command text.
        cwd: The directory the command would run in. Classification does not
            depend on it today but callers always supply it.

    Returns:
        The command's context classification.
    """
    tokens = _tokens(command.lower())
    if not tokens:
        return AMBIGUOUS

    base, args = tokens[0], tokens[1:]

    if base == "cd":
        return _classify_cd(args)
    if base == "git":
        return _classify_git(args)
    if base in UNIVERSAL_COMMANDS:
        return UNIVERSAL
    if base in PROJECT_COMMANDS:
        return ProjectSpecific(requires=PROJECT_COMMANDS[base])

    if base.startswith(("./", "../", "/", "~/")) or any(_is_path_token(arg) for arg in args):
        return PATH_DEPENDENT

    return AMBIGUOUS


def _is_relevant(classification: CommandContextType, env_context: EnvironmentContext) -> bool:
    if isinstance(classification, ProjectSpecific):
        return env_context.satisfies(classification.requires)
    return classification.kind in ("universal", "ambiguous")


def is_relevant_in_directory(command: str, cwd: str, env_context: EnvironmentContext) -> bool:
    """Decide whether a command is plausibly meaningful in ``cwd``.

    Universal and ambiguous commands are relevant, path-dependent ones are not,
    and project-specific ones only when the environment meets their requirement.
    """
    return _is_relevant(classify(command, cwd), env_context)


def filter_for_current_context(
    commands: Iterable[CommandFrequency],
    cwd: str,
    env_context: EnvironmentContext,
) -> list[CommandFrequency]:
    """Narrow history-derived commands to those that apply from ``cwd``.

    An otherwise ambiguous command whose arguments name a specific file is
    treated as path-dependent and dropped.
    """
    kept: list[CommandFrequency] = []
    for freq in commands:
        classification = classify(freq.command, cwd)
        if classification == AMBIGUOUS:
            tokens = _tokens(freq.command)
            if tokens and tokens[0].lower() not in UNIVERSAL_COMMANDS:
                if any(_looks_like_filename(arg) for arg in tokens[1:]):
                    classification = PATH_DEPENDENT
        if _is_relevant(classification, env_context):
            kept.append(freq)
    return kept
