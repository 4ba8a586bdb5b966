"""Project type detection from directory listings, plus environment scanning."""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from cmdsense.context.models import EnvironmentContext, GitInfo, ProjectType
from cmdsense.core.logging import logger

# (label, exact entry names, entry suffixes) in reporting order
TECHNOLOGY_MARKERS: tuple[tuple[str, frozenset[str], tuple[str, ...]], ...] = (
    (
        "Python",
        frozenset({"requirements.txt", "setup.py", "pyproject.toml", "Pipfile", "venv/", ".venv/"}),
        (),
    ),
    ("Node.js", frozenset({"package.json"}), ()),
    ("Swift", frozenset({"Package.swift"}), (".xcodeproj/", ".xcworkspace/")),
    ("Rust", frozenset({"Cargo.toml"}), ()),
    ("Go", frozenset({"go.mod"}), ()),
    ("Ruby", frozenset({"Gemfile"}), ()),
    ("Java/Kotlin", frozenset({"pom.xml", "build.gradle", "build.gradle.kts"}), ()),
    ("Docker", frozenset({"Dockerfile", "docker-compose.yml", "docker-compose.yaml"}), ()),
    ("C/C++", frozenset({"CMakeLists.txt", "Makefile", "configure.ac", "meson.build"}), ()),
    (".NET", frozenset(), (".csproj", ".sln", ".fsproj")),
)

# Marker file -> project type, in priority order for the primary type
PROJECT_TYPE_MARKERS: tuple[tuple[str, ProjectType], ...] = (
    ("package.json", ProjectType.NODE),
    ("Package.swift", ProjectType.SWIFT),
    ("Cargo.toml", ProjectType.RUST),
    ("pyproject.toml", ProjectType.PYTHON),
    ("setup.py", ProjectType.PYTHON),
    ("requirements.txt", ProjectType.PYTHON),
    ("go.mod", ProjectType.GO),
    ("Gemfile", ProjectType.RUBY),
    ("pom.xml", ProjectType.JAVA),
    ("build.gradle", ProjectType.JAVA),
    ("build.gradle.kts", ProjectType.JAVA),
)

DOTNET_SUFFIXES = (".csproj", ".sln")

UNKNOWN_LABEL = "unknown"


def detect_technologies(contents: Sequence[str]) -> list[str]:
    """Return every technology label whose markers appear in ``contents``.

    Args:
        contents: Entry names of one directory; directories end with ``/``.

    Returns:
        Matching labels in fixed priority order.
    """
    names = set(contents)
    return [
        label
        for label, exact, suffixes in TECHNOLOGY_MARKERS
        if not names.isdisjoint(exact) or (suffixes and any(name.endswith(suffixes) for name in names))
    ]


def detect_project_types(contents: Sequence[str]) -> str:
    """Describe the technologies found in a directory listing.

    This performs no I/O; scanning the filesystem is the caller's job.

    Returns:
        All matches joined with ", " (e.g. "Node.js, Docker"), or "unknown".
    """
    labels = detect_technologies(contents)
    return ", ".join(labels) if labels else UNKNOWN_LABEL


def detect_primary_project_type(contents: Sequence[str]) -> ProjectType:
    """Pick the single project type used for command relevance checks."""
    names = set(contents)
    for marker, project_type in PROJECT_TYPE_MARKERS:
        if marker in names:
            return project_type
    if any(name.endswith(DOTNET_SUFFIXES) for name in names):
        return ProjectType.DOTNET
    return ProjectType.UNKNOWN


def list_directory(path: Path) -> list[str]:
    """List entry names in ``path``, suffixing directories with ``/``.

    A missing or unreadable directory yields an empty listing.
    """
    try:
        return sorted(entry.name + "/" if entry.is_dir() else entry.name for entry in path.iterdir())
    except OSError as e:
        logger.debug(f"Could not list {path}: {e}")
        return []


async def _run_git_command(args: list[str], cwd: Path) -> str | None:
    """Run a git command and return stdout, or None on error."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await proc.communicate()
        if proc.returncode == 0:
            return stdout.decode(errors="replace").strip()
    except OSError:
        pass
    return None


async def detect_git_info(path: Path) -> GitInfo | None:
    """Detect git repository state for ``path``.

    Returns:
        GitInfo when ``path`` is inside a work tree, None otherwise or when git
        is not installed.
    """
    inside = await _run_git_command(["rev-parse", "--is-inside-work-tree"], path)
    if inside != "true":
        return None

    info = GitInfo()

    branch = await _run_git_command(["rev-parse", "--abbrev-ref", "HEAD"], path)
    if branch:
        info.branch = branch

    status = await _run_git_command(["status", "--porcelain"], path)
    if status is not None:
        info.is_dirty = len(status) > 0

    # "<behind>\t<ahead>"; fails without an upstream, which leaves both at 0
    counts = await _run_git_command(["rev-list", "--left-right", "--count", "@{upstream}...HEAD"], path)
    if counts:
        parts = counts.split()
        if len(parts) == 2 and all(p.isdigit() for p in parts):
            info.behind, info.ahead = int(parts[0]), int(parts[1])

    return info


DirectoryLister = Callable[[Path], Sequence[str]]
GitProbe = Callable[[Path], Awaitable[GitInfo | None]]


class EnvironmentContextProvider:
    """Build EnvironmentContext values for directories, caching listing results.

    Only the listing-derived part (project type and technologies) is cached;
    git state changes too often and is probed on every call.

    Attributes:
        cache_ttl: Seconds a cached directory scan stays valid.
        cache_size: Maximum number of directories kept in the cache.
    """

    def __init__(
        self,
        lister: DirectoryLister = list_directory,
        git_probe: GitProbe | None = detect_git_info,
        cache_ttl: float = 60.0,
        cache_size: int = 20,
    ) -> None:
        self._lister = lister
        self._git_probe = git_probe
        self.cache_ttl = cache_ttl
        self.cache_size = cache_size
        self._cache: dict[str, tuple[ProjectType, list[str], float]] = {}
        # Scans run on worker threads; the lock covers cache reads and writes only
        self._lock = threading.Lock()

    def _scan(self, cwd: Path) -> tuple[ProjectType, list[str]]:
        key = str(cwd)
        now = time.monotonic()

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                project_type, technologies, stamp = cached
                if now - stamp < self.cache_ttl:
                    return project_type, list(technologies)
                self._cache.pop(key, None)

        contents = list(self._lister(cwd))
        project_type = detect_primary_project_type(contents)
        technologies = detect_technologies(contents)

        with self._lock:
            self._cache[key] = (project_type, technologies, now)
            excess = len(self._cache) - self.cache_size
            if excess > 0:
                oldest = sorted(self._cache, key=lambda k: self._cache[k][2])
                for stale in oldest[:excess]:
                    self._cache.pop(stale, None)
        if excess > 0:
            logger.info(f"Pruned project type cache to {self.cache_size} entries")

        return project_type, list(technologies)

    async def get_environment_context(self, cwd: Path | str) -> EnvironmentContext:
        """Scan ``cwd`` and return its environment context."""
        path = Path(cwd).expanduser()
        project_type, technologies = await asyncio.to_thread(self._scan, path)
        git_info = await self._git_probe(path) if self._git_probe is not None else None
        return EnvironmentContext(
            cwd=str(path),
            project_type=project_type,
            technologies=technologies,
            git_info=git_info,
        )

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.info("Environment context cache cleared")
