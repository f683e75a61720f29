"""StudentBox configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/studentbox/config.toml (user config)
4. /etc/studentbox/config.toml (system config)

Secrets are loaded from secrets.env files in the same directories.
"""

from studentbox.config.schema import (
    AuthConfig,
    DatabaseConfig,
    ImportConfig,
    SecretsConfig,
    ServerConfig,
    StudentboxConfig,
)
from studentbox.config.settings import get_settings, reset_settings, settings

__all__ = [
    "AuthConfig",
    "DatabaseConfig",
    "ImportConfig",
    "SecretsConfig",
    "ServerConfig",
    "StudentboxConfig",
    "get_settings",
    "reset_settings",
    "settings",
]
