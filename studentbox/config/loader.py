"""Configuration loader for StudentBox.

Reads ``config.toml`` and ``secrets.env`` from the first directory that has
them, then applies ``STUDENTBOX_*`` environment variables on top.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from studentbox.config.schema import SecretsConfig, StudentboxConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "STUDENTBOX"

# Short forms for the values most often set by hand
ENV_ALIASES: dict[str, tuple[str, str]] = {
    "DEBUG": ("server", "debug"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "MONGODB_URL": ("database", "mongodb_url"),
    "MONGODB_DATABASE": ("database", "mongodb_database"),
}

_TRUE_VALUES = ("true", "1", "yes", "on")


def _search_dirs() -> list[Path]:
    """Directories holding config and secrets, most specific first."""
    return [
        Path.cwd(),
        Path.home() / ".config" / "studentbox",
        Path("/opt/studentbox"),
        Path("/etc/studentbox"),
    ]


def get_config_search_paths() -> list[Path]:
    return [directory / "config.toml" for directory in _search_dirs()]


def get_secrets_search_paths() -> list[Path]:
    return [directory / "secrets.env" for directory in _search_dirs()]


def _first_existing(paths: list[Path]) -> Path | None:
    for path in paths:
        if path.is_file():
            logger.debug("Found %s", path)
            return path
    return None


def find_config_file() -> Path | None:
    return _first_existing(get_config_search_paths())


def find_secrets_file() -> Path | None:
    return _first_existing(get_secrets_search_paths())


def load_toml_file(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def parse_env_file(path: Path) -> dict[str, str]:
    """Read ``KEY=value`` lines, ignoring blanks, comments and other lines.

    Values may be wrapped in single or double quotes.
    """
    env_vars: dict[str, str] = {}
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = (part.strip() for part in line.split("=", 1))
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            env_vars[key] = value
    return env_vars


def _scalar_fields() -> dict[str, dict[str, type]]:
    """Map each config table to the fields that can be set from the environment."""
    tables: dict[str, dict[str, type]] = {}
    for name, field in StudentboxConfig.model_fields.items():
        section = field.annotation
        if not (isinstance(section, type) and issubclass(section, BaseModel)):
            continue
        tables[field.alias or name] = {
            key: sub.annotation
            for key, sub in section.model_fields.items()
            if sub.annotation in (str, int, bool)
        }
    return tables


def _env_targets(prefix: str) -> dict[str, tuple[str, str]]:
    targets = {
        f"{prefix}_{table.upper()}_{key.upper()}": (table, key)
        for table, fields in _scalar_fields().items()
        for key in fields
    }
    # Aliases come last so they win over the long form
    targets.update({f"{prefix}_{alias}": path for alias, path in ENV_ALIASES.items()})
    return targets


def _coerce(env_var: str, raw: str, kind: type) -> Any:
    if kind is bool:
        return raw.strip().lower() in _TRUE_VALUES
    if kind is int:
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{env_var} must be an integer, got {raw!r}") from None
    return raw


def apply_env_overrides(config_dict: dict[str, Any], prefix: str = ENV_PREFIX) -> None:
    """Overlay environment variables onto a raw config dictionary, in place.

    Every scalar setting has a ``{prefix}_{TABLE}_{KEY}`` variable, e.g.
    ``STUDENTBOX_IMPORT_CHUNK_SIZE`` sets ``[import] chunk_size``.
    """
    kinds = _scalar_fields()
    for env_var, (table, key) in _env_targets(prefix).items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        config_dict.setdefault(table, {})[key] = _coerce(env_var, raw, kinds[table][key])


def load_secrets(secrets_file: Path | None = None) -> SecretsConfig:
    """Load secrets from a secrets.env file, letting the environment win."""
    secrets_file = secrets_file or find_secrets_file()
    key_name = f"{ENV_PREFIX}_SECRET_KEY"

    secret_key = None
    if secrets_file and secrets_file.exists():
        logger.info("Loading secrets from: %s", secrets_file)
        secret_key = parse_env_file(secrets_file).get(key_name)

    return SecretsConfig(secret_key=os.environ.get(key_name) or secret_key)


def load_config(config_file: Path | None = None) -> StudentboxConfig:
    """Build the configuration from a TOML file plus environment overrides.

    Args:
        config_file: File to read; the search paths are used when omitted.
    """
    config_file = config_file or find_config_file()

    config_dict: dict[str, Any] = {}
    if config_file and config_file.exists():
        logger.info("Loading config from: %s", config_file)
        config_dict = load_toml_file(config_file)
    else:
        logger.info("No config file found, using defaults with env overrides")

    apply_env_overrides(config_dict)
    return StudentboxConfig(**config_dict)
