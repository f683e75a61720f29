"""Process-wide settings for StudentBox.

``settings`` is a lazy proxy: the first attribute access loads config.toml,
secrets.env and the environment, and every later access reuses the result.
Code reads flat names such as ``settings.import_chunk_size`` rather than
walking the nested config tables.
"""

import logging
import secrets as secrets_module

from studentbox.config.loader import load_config, load_secrets
from studentbox.config.schema import SecretsConfig, StudentboxConfig

logger = logging.getLogger(__name__)


class Settings:
    """Flat, read-only view over the loaded config and secrets."""

    def __init__(
        self,
        config: StudentboxConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        self._config = config or load_config()
        self._secrets = secrets or load_secrets()

        if not self._secrets.secret_key:
            # Tokens signed with this key die with the process
            self._secrets.secret_key = secrets_module.token_urlsafe(32)
            logger.warning(
                "SECURITY WARNING: STUDENTBOX_SECRET_KEY is not set; using a random "
                "key. Access tokens will stop working when the server restarts."
            )

    @property
    def config(self) -> StudentboxConfig:
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        return self._secrets

    @property
    def app_name(self) -> str:
        return self._config.app_name

    # [server]

    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    @property
    def enforce_https(self) -> bool:
        return self._config.server.enforce_https

    @property
    def rate_limit_per_minute(self) -> int:
        return self._config.server.rate_limit_per_minute

    @property
    def cors_origins(self) -> list[str]:
        return self._config.server.cors_origins

    # [database]

    @property
    def mongodb_url(self) -> str:
        return self._config.database.mongodb_url

    @property
    def mongodb_database(self) -> str:
        return self._config.database.mongodb_database

    @property
    def min_pool_size(self) -> int:
        return self._config.database.min_pool_size

    @property
    def max_pool_size(self) -> int:
        return self._config.database.max_pool_size

    # [import]

    @property
    def max_upload_size_mb(self) -> int:
        return self._config.imports.max_upload_mb

    @property
    def max_upload_size_bytes(self) -> int:
        return self._config.imports.max_upload_bytes

    @property
    def import_chunk_size(self) -> int:
        """Records per store write before the store's own cap is applied."""
        return self._config.imports.chunk_size

    @property
    def import_detail_limit(self) -> int:
        """Duplicates and errors listed individually in a result."""
        return self._config.imports.detail_limit

    @property
    def import_preview_rows(self) -> int:
        return self._config.imports.preview_rows

    @property
    def verify_id_checksum(self) -> bool:
        return self._config.imports.verify_id_checksum

    # [auth]

    @property
    def access_token_expire_minutes(self) -> int:
        return self._config.auth.access_token_expire_minutes

    @property
    def auth_rate_limit_per_minute(self) -> int:
        return self._config.auth.auth_rate_limit_per_minute

    @property
    def secret_key(self) -> str:
        return self._secrets.secret_key or ""


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached Settings so the next access reloads them."""
    global _settings
    _settings = None


class _SettingsProxy:
    def __getattr__(self, name: str):
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return repr(get_settings())


settings = _SettingsProxy()
