"""Pydantic models describing config.toml and secrets.env."""

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 2
    debug: bool = False
    enforce_https: bool = False
    # Uploads per client per minute
    rate_limit_per_minute: int = 60
    # Empty means same-origin only
    cors_origins: list[str] = []


class DatabaseConfig(BaseModel):
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "studentbox"
    min_pool_size: int = 10
    max_pool_size: int = 100


class ImportConfig(BaseModel):
    """The ``[import]`` table: limits of the bulk student import."""

    max_upload_mb: int = Field(default=10, ge=0)
    # Records per atomic store write; the store may lower it further
    chunk_size: int = Field(default=500, ge=1)
    # Duplicates and errors listed one by one before the rest are only counted
    detail_limit: int = Field(default=10, ge=0)
    preview_rows: int = Field(default=20, ge=0)
    verify_id_checksum: bool = False

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


class AuthConfig(BaseModel):
    access_token_expire_minutes: int = 120
    auth_rate_limit_per_minute: int = 30


class StudentboxConfig(BaseModel):
    """Root of config.toml."""

    model_config = {"populate_by_name": True}

    app_name: str = "StudentBox"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    # "import" is a keyword, so the table is exposed as ``imports``
    imports: ImportConfig = Field(default_factory=ImportConfig, alias="import")
    auth: AuthConfig = Field(default_factory=AuthConfig)


class SecretsConfig(BaseModel):
    """Values kept out of config.toml."""

    secret_key: str | None = None
