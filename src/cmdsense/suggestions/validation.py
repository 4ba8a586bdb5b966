"""Filter parsed suggestions down to commands that make sense in the cwd."""

from __future__ import annotations

import posixpath
import re
import shlex
from collections.abc import Callable, Iterable
from pathlib import Path

from cmdsense.context.models import EnvironmentContext
from cmdsense.core.logging import logger, redact_sensitive
from cmdsense.suggestions.classifier import classify
from cmdsense.suggestions.models import CommandSuggestion, ProjectSpecific

PathExists = Callable[[Path], bool]

# Pure readers: pointless when the file they read is missing. Every other verb,
# editors and creators included, may name a file that does not exist yet.
READER_COMMANDS = frozenset({"cat", "less", "more", "head", "tail"})

SHELL_OPERATORS = frozenset({"|", "||", "&", "&&", ";", ">", ">>", "<", "<<"})

HOME_ALIASES = frozenset({"~", "~/", "$HOME", "${HOME}"})

_NUMERIC_RE = re.compile(r"^[+-]?\d+$")


def default_path_exists(path: Path) -> bool:
    return path.exists()


def _split(command: str) -> list[str]:
    lexer = shlex.shlex(command, posix=True, punctuation_chars=True)
    lexer.whitespace_split = True
    try:
        return list(lexer)
    except ValueError:
        return command.split()


def _expand_home(path: str, home: str | None) -> str:
    if home is None:
        return path
    if path == "~":
        return home
    if path.startswith("~/"):
        return posixpath.join(home, path[2:])
    return path


def _normalize(path: str, home: str | None) -> str:
    return posixpath.normpath(_expand_home(path, home))


def _is_parent_target(target: str) -> bool:
    return target.rstrip("/") == ".."


def _resolve_cd_target(target: str, cwd: str, home: str | None) -> str | None:
    if target == "-":
        return None
    # ~user is never resolved; ~ and ~/ only with a known home directory
    if target.startswith("~") and (home is None or (target != "~" and not target.startswith("~/"))):
        return None
    expanded = _expand_home(target, home)
    if not posixpath.isabs(expanded):
        expanded = posixpath.join(cwd, expanded)
    return posixpath.normpath(expanded)


def _is_redundant_cd(args: list[str], cwd: str, home: str | None) -> bool:
    """Check whether a ``cd`` with ``args`` would leave the shell where it is.

    With no known home directory, a ``cd`` home is never treated as a no-op.
    """
    normalized_cwd = _normalize(cwd, home)
    if not args or (len(args) == 1 and args[0] in HOME_ALIASES):
        return home is not None and normalized_cwd == _normalize(home, home)

    target = " ".join(args)
    if _is_parent_target(target):
        return False
    return _resolve_cd_target(target, normalized_cwd, home) == normalized_cwd


def _referenced_paths(args: Iterable[str]) -> list[str]:
    paths: list[str] = []
    for arg in args:
        if arg in SHELL_OPERATORS:
            break
        if arg.startswith(("-", "$")) or "://" in arg or _NUMERIC_RE.match(arg):
            continue
        paths.append(arg)
    return paths


def _exists(path_exists: PathExists, ref: str, cwd: str, home: str | None) -> bool:
    expanded = _expand_home(ref, home)
    candidate = Path(expanded) if posixpath.isabs(expanded) else Path(cwd) / expanded
    try:
        return bool(path_exists(candidate))
    except Exception as e:
        # A check that cannot complete counts as missing
        logger.debug(f"Existence check failed for {candidate}: {e}")
        return False


def _current_home() -> str | None:
    try:
        return str(Path.home())
    except RuntimeError as e:
        logger.debug(f"Home directory unavailable: {e}")
        return None


def validate_suggestions_for_cwd(
    suggestions: Iterable[CommandSuggestion],
    cwd: str,
    env_context: EnvironmentContext,
    path_exists: PathExists = default_path_exists,
    home: str | None = None,
) -> list[CommandSuggestion]:
    """Drop suggestions that cannot be meaningfully run from ``cwd``.

    A suggestion is removed when:

    - it is project-specific and the environment does not meet its requirement;
    - it is a ``cd`` whose target resolves to ``cwd`` (``cd ..`` always stays);
    - it is a bare ``cd`` or ``cd ~`` and ``cwd`` is already the home directory;
    - it is a pure reader (``cat``, ``less``, ``head``, ``tail``) of a path that
      does not exist under ``cwd``. Creators and editors are exempt.

    Args:
        suggestions: Parsed suggestions, in display order.
        cwd: Absolute current working directory.
        env_context: Detected facts about ``cwd``.
        path_exists: Filesystem existence check; failures count as missing.
        home: Home directory; defaults to the current user's. When it cannot
            be determined, no ``cd`` counts as a move to home.

    Returns:
        The surviving suggestions, order preserved.
    """
    if home is None:
        home = _current_home()
    kept: list[CommandSuggestion] = []

    for suggestion in suggestions:
        command = suggestion.command
        classification = classify(command, cwd)
        if isinstance(classification, ProjectSpecific) and not env_context.satisfies(classification.requires):
            logger.debug(f"Filtered out '{redact_sensitive(command)}' - requires {classification.requires.value}")
            continue

        tokens = _split(command)
        if not tokens:
            kept.append(suggestion)
            continue
        verb, args = tokens[0].lower(), tokens[1:]

        if verb == "cd" and _is_redundant_cd(args, cwd, home):
            logger.debug(f"Filtered out '{redact_sensitive(command)}' - already in that directory")
            continue

        if verb in READER_COMMANDS:
            missing = [ref for ref in _referenced_paths(args) if not _exists(path_exists, ref, cwd, home)]
            if missing:
                logger.debug(f"Filtered out '{redact_sensitive(command)}' - references missing path {missing[0]}")
                continue

        kept.append(suggestion)

    return kept
