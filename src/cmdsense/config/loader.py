import os
import sys
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]

from .settings import ConfigValidationError, Settings

# Environment variable -> (dotted settings path, converter)
ENV_MAPPINGS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "CMDSENSE_LOG_LEVEL": ("logging.level", str),
    "CMDSENSE_LOG_FILE": ("logging.file", str),
    "CMDSENSE_HISTORY_FILE": ("history.file", str),
    "CMDSENSE_HISTORY_LIMIT": ("history.limit", int),
    "CMDSENSE_CACHE_TTL": ("context.cache_ttl", float),
    "CMDSENSE_CACHE_SIZE": ("context.cache_size", int),
}


def get_config_paths() -> tuple[Path, Path]:
    """Return the (user, project) config file locations."""
    return (
        Path.home() / ".config" / "cmdsense" / "config.toml",
        Path.cwd() / ".cmdsense" / "config.toml",
    )


def _merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``overlay`` into ``base`` section by section; overlay wins."""
    for key, value in overlay.items():
        current = base.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            _merge(current, value)
        else:
            base[key] = dict(value) if isinstance(value, Mapping) else value
    return base


def _env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    """Build a config layer from ``CMDSENSE_*`` variables.

    Values that fail conversion are kept as strings so that validation names
    the offending setting.
    """
    layer: dict[str, Any] = {}
    for env_var, (dotted, convert) in ENV_MAPPINGS.items():
        raw = environ.get(env_var)
        if not raw:
            continue
        try:
            value = convert(raw)
        except ValueError:
            value = raw
        section, _, key = dotted.partition(".")
        layer.setdefault(section, {})[key] = value
    return layer


def _toml_layer(path: Path) -> dict[str, Any]:
    """Read one TOML config file; a missing file is an empty layer."""
    try:
        with open(path, "rb") as f:
            return dict(tomllib.load(f))
    except FileNotFoundError:
        return {}
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from None


async def load_config(
    user_config_path: Path | None = None,
    project_config_path: Path | None = None,
    load_env: bool = True,
) -> Settings:
    """Load settings from defaults, config files and the environment.

    Later layers override earlier ones:

    1. Defaults
    2. User config (~/.config/cmdsense/config.toml)
    3. Project config (.cmdsense/config.toml in the working directory)
    4. ``CMDSENSE_*`` environment variables, unless ``load_env`` is False

    Raises:
        ConfigValidationError: A file is not valid TOML or a value is rejected.
    """
    default_user, default_project = get_config_paths()
    layers = [
        _toml_layer(user_config_path or default_user),
        _toml_layer(project_config_path or default_project),
    ]
    if load_env:
        layers.append(_env_layer(os.environ))

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge(merged, layer)
    return Settings.validate_config(merged)
