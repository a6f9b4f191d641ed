"""Client configuration: pool connection settings, named-query path, migrations."""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from psycopg.conninfo import make_conninfo
from sqlalchemy.engine import URL


class PostgresSettings(BaseModel):
    """Connection parameters for one PostgreSQL server, plus pool sizing."""

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: SecretStr = SecretStr("")
    database: str = "postgres"
    application_name: str = "pgscope"

    # Pool
    min_size: int = Field(default=1, ge=0)
    max_size: int = Field(default=10, ge=1)
    connect_timeout: float = 5.0  # seconds to wait for a pooled connection
    max_idle: float = 600.0
    max_lifetime: float = 3600.0
    check_on_checkout: bool = False

    # Per-connection statement timeout in seconds; None leaves the server default
    statement_timeout: float | None = None

    def conninfo(self) -> str:
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password.get_secret_value(),
            application_name=self.application_name,
        )

    def sqlalchemy_url(self) -> URL:
        return URL.create(
            "postgresql+psycopg",
            username=self.user,
            password=self.password.get_secret_value() or None,
            host=self.host,
            port=self.port,
            database=self.database,
        )


class MigrationSettings(BaseModel):
    path: str
    table: str = "migrations"
    # Defaults to the main postgres settings when unset
    connection: PostgresSettings | None = None


class PgConfig(BaseSettings):
    """Top-level settings. Environment variables use the PGSCOPE_ prefix,
    nested fields use ``__`` (e.g. ``PGSCOPE_POSTGRES__HOST``)."""

    model_config = SettingsConfigDict(
        env_prefix="PGSCOPE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    sql_path: str | None = None
    sql_extension: str = "sql"
    migrations: MigrationSettings | None = None
