"""Tests for logging infrastructure."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from cmdsense.cli import cli
from cmdsense.core.logging import (
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
    LOG_FORMAT,
    VALID_LOG_LEVELS,
    disable_logging,
    enable_logging,
    get_log_dir,
    get_log_file,
    get_log_files,
    redact_sensitive,
    reset_logging,
    setup_logging,
)
from cmdsense.history.parser import find_history_file

if TYPE_CHECKING:
    from _pytest.monkeypatch import MonkeyPatch


@pytest.fixture(autouse=True)
def _reset_handlers():
    yield
    reset_logging()
    disable_logging()


class TestConstants:
    """Tests for module-level constants."""

    def test_default_log_dir_in_local_share(self) -> None:
        """DEFAULT_LOG_DIR should be in ~/.local/share/cmdsense/logs."""
        assert isinstance(DEFAULT_LOG_DIR, Path)
        assert "cmdsense" in str(DEFAULT_LOG_DIR)
        assert "logs" in str(DEFAULT_LOG_DIR)

    def test_default_log_file_ends_with_log(self) -> None:
        assert str(DEFAULT_LOG_FILE).endswith("cmdsense.log")
        assert get_log_file() == DEFAULT_LOG_FILE
        assert get_log_dir() == DEFAULT_LOG_DIR

    def test_log_format_contains_required_parts(self) -> None:
        """LOG_FORMAT should contain time, level, name, and message."""
        assert "{time" in LOG_FORMAT
        assert "{level" in LOG_FORMAT
        assert "{name}" in LOG_FORMAT
        assert "{message}" in LOG_FORMAT

    def test_valid_log_levels(self) -> None:
        assert VALID_LOG_LEVELS == frozenset({"DEBUG", "INFO", "WARNING", "ERROR"})


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_log_directory(self, tmp_path: Path) -> None:
        """Creates log directory if it doesn't exist."""
        log_file = tmp_path / "logs" / "test.log"
        reset_logging()

        result = setup_logging(log_file=log_file)

        assert result == log_file
        assert log_file.parent.exists()

    def test_writes_library_records(self, tmp_path: Path) -> None:
        """Records from cmdsense modules reach the file once logging is set up."""
        log_file = tmp_path / "test.log"
        reset_logging()

        setup_logging(level="debug", log_file=log_file)
        reset_logging()

        content = log_file.read_text(encoding="utf-8")
        assert "Logging initialized at DEBUG level" in content

    def test_level_is_case_insensitive(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        reset_logging()

        assert setup_logging(level="warning", log_file=log_file) == log_file

    def test_raises_for_invalid_level(self, tmp_path: Path) -> None:
        """Raises ValueError for invalid log level."""
        reset_logging()

        with pytest.raises(ValueError) as exc_info:
            setup_logging(level="INVALID", log_file=tmp_path / "test.log")

        assert "Invalid log level" in str(exc_info.value)
        assert "INVALID" in str(exc_info.value)

    def test_expands_user(self, tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        reset_logging()

        result = setup_logging(log_file="~/custom/cmdsense.log")

        assert result == tmp_path / "custom" / "cmdsense.log"

    @given(level=st.sampled_from(sorted(VALID_LOG_LEVELS)))
    @settings(max_examples=10, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_accepts_all_valid_levels(self, tmp_path: Path, level: str) -> None:
        """Property: every valid level is accepted in any case."""
        reset_logging()
        assert setup_logging(level=level.lower(), log_file=tmp_path / "test.log") == tmp_path / "test.log"


class TestDisableEnableLogging:
    """Tests for toggling cmdsense log records."""

    def test_disabled_records_not_written(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        reset_logging()
        setup_logging(log_file=log_file)

        disable_logging()
        find_history_file(tmp_path, {})
        enable_logging()
        reset_logging()

        assert "No shell history file found" not in log_file.read_text(encoding="utf-8")

    def test_enabled_records_written(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        reset_logging()
        setup_logging(log_file=log_file)

        find_history_file(tmp_path, {})
        reset_logging()

        assert "No shell history file found" in log_file.read_text(encoding="utf-8")


class TestRedactSensitive:
    """Tests for redact_sensitive function."""

    def test_redacts_token_assignments(self) -> None:
        content = "running: export GITHUB_TOKEN=ghp_abc123 && make"
        result = redact_sensitive(content)
        assert "ghp_abc123" not in result
        assert "GITHUB_TOKEN=[REDACTED]" in result

    @pytest.mark.parametrize("name", ["DB_PASSWORD", "AWS_SECRET_ACCESS_KEY", "OPENAI_API_KEY"])
    def test_redacts_secret_names(self, name: str) -> None:
        assert redact_sensitive(f"{name}=hunter2") == f"{name}=[REDACTED]"

    def test_redacts_home_directory(self) -> None:
        home = str(Path.home())
        assert redact_sensitive(f"cwd={home}/projects") == "cwd=~/projects"

    def test_home_unavailable(self, monkeypatch: MonkeyPatch) -> None:
        def no_home() -> Path:
            raise RuntimeError("Could not determine home directory.")

        monkeypatch.setattr(Path, "home", staticmethod(no_home))
        assert redact_sensitive("API_KEY=abc /tmp/x") == "API_KEY=[REDACTED] /tmp/x"

    def test_preserves_non_sensitive_content(self) -> None:
        assert redact_sensitive("Filtered out 'npm test' - requires node") == "Filtered out 'npm test' - requires node"

    @given(st.text())
    def test_never_raises(self, content: str) -> None:
        assert isinstance(redact_sensitive(content), str)


class TestGetLogFiles:
    """Tests for get_log_files function."""

    def test_returns_empty_when_dir_not_exists(self, tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setattr("cmdsense.core.logging.get_log_dir", lambda: tmp_path / "nonexistent")
        assert get_log_files() == []

    def test_returns_recent_files_newest_first(self, tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
        log_dir = tmp_path / "logs"
        log_dir.mkdir()
        main = log_dir / "cmdsense.log"
        rotated = log_dir / "cmdsense.2024-01-01_00-00-00_000000.log.gz"
        stale = log_dir / "cmdsense.2020-01-01_00-00-00_000000.log.gz"
        other = log_dir / "unrelated.txt"
        for path in (main, rotated, stale, other):
            path.write_text("x", encoding="utf-8")

        now = time.time()
        os.utime(rotated, (now - 60, now - 60))
        os.utime(stale, (now - 30 * 86400, now - 30 * 86400))
        monkeypatch.setattr("cmdsense.core.logging.get_log_dir", lambda: log_dir)

        assert get_log_files(days=7) == [main, rotated]


class TestLogsCommand:
    """Tests for the logs CLI command."""

    def test_logs_shows_configured_path(self, tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
        log_file = tmp_path / "cli.log"
        monkeypatch.setenv("CMDSENSE_LOG_FILE", str(log_file))
        monkeypatch.chdir(tmp_path)

        result = CliRunner().invoke(cli, ["logs"])

        assert result.exit_code == 0
        assert f"Log file: {log_file} [exists]" in result.output
        assert "Level: INFO" in result.output
