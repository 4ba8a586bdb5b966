from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

HISTORY_LIMIT_RANGE = (1, 100)


class ConfigValidationError(ValueError):
    """Raised when configuration cannot be turned into Settings."""


def _clean_path(value: str | None, setting: str) -> str | None:
    """Strip a configured path; a blank string is a mistake, not "unset"."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError(f"{setting} is empty; give a path or remove the setting")
    return value


class _Section(BaseModel):
    # Misspelled keys in config files should fail loudly
    model_config = ConfigDict(extra="forbid")


class LoggingSettings(_Section):
    """Where and how verbosely cmdsense logs.

    Attributes:
        level: DEBUG, INFO, WARNING or ERROR (case-insensitive).
        file: Log file path; ``~`` is expanded. Unset means
            ~/.local/share/cmdsense/logs/cmdsense.log.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def uppercase_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("file")
    @classmethod
    def check_file(cls, v: str | None) -> str | None:
        return _clean_path(v, "logging.file")


class HistorySettings(_Section):
    """Shell history lookup.

    Attributes:
        file: History file to read instead of the shell's default.
        limit: How many frequent commands the ``history`` command shows.
    """

    file: str | None = None
    limit: int = 10

    @field_validator("file")
    @classmethod
    def check_file(cls, v: str | None) -> str | None:
        return _clean_path(v, "history.file")

    @field_validator("limit")
    @classmethod
    def check_limit(cls, v: int) -> int:
        low, high = HISTORY_LIMIT_RANGE
        if not low <= v <= high:
            raise ValueError(f"history.limit must be between {low} and {high}, got {v}")
        return v


class ContextSettings(_Section):
    """Directory scan caching.

    Attributes:
        cache_ttl: Seconds before a directory is scanned again.
        cache_size: Directories remembered at once.
    """

    cache_ttl: float = 60.0
    cache_size: int = 20

    @field_validator("cache_ttl")
    @classmethod
    def check_ttl(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"context.cache_ttl must be positive, got {v}")
        return v

    @field_validator("cache_size")
    @classmethod
    def check_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"context.cache_size must be at least 1, got {v}")
        return v


class Settings(_Section):
    """All cmdsense settings, one attribute per config file section."""

    logging: LoggingSettings = LoggingSettings()
    history: HistorySettings = HistorySettings()
    context: ContextSettings = ContextSettings()

    @classmethod
    def validate_config(cls, config_dict: dict[str, Any]) -> "Settings":
        """Build Settings from merged config data.

        Raises:
            ConfigValidationError: Listing every rejected setting by its dotted
                path, e.g. ``history.limit``.
        """
        try:
            return cls.model_validate(config_dict)
        except ValidationError as e:
            problems = [f"  - {'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ConfigValidationError("Configuration validation failed:\n" + "\n".join(problems)) from None
