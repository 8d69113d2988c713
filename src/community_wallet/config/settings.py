"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``CWALLET_``, nested via ``__``)
2. YAML config file (``config_path`` field or ``CWALLET_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from community_wallet.utils.address import validate_address

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class DatabaseEngine(enum.StrEnum):
    """Supported database engines."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class LogLevel(enum.StrEnum):
    """Log levels accepted by the server entry point."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="CWALLET_SERVER__",
        case_sensitive=False,
    )

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000


class DatabaseConfig(BaseSettings):
    """Database settings."""

    model_config = SettingsConfigDict(
        env_prefix="CWALLET_DB__",
        case_sensitive=False,
    )

    engine: DatabaseEngine = Field(
        default=DatabaseEngine.SQLITE,
        description="Database backend: sqlite or postgresql",
    )
    dsn: str = Field(
        default="sqlite+aiosqlite:///./community_wallet.db",
        description="Async database connection string",
    )
    max_idle_connections: int = 5
    max_open_connections: int = 10
    debug_sql: bool = False


class OracleConfig(BaseSettings):
    """Idena indexer API settings."""

    model_config = SettingsConfigDict(
        env_prefix="CWALLET_ORACLE__",
        case_sensitive=False,
    )

    url: str = "https://api.idena.io/api"
    timeout: float = Field(default=5.0, gt=0, description="Per-request timeout in seconds")
    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=0.5, ge=0)


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="CWALLET_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``CWALLET_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="CWALLET_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    version: str = "0.1.0"
    log_level: LogLevel = LogLevel.INFO
    config_path: str = ""
    admin_address: str = Field(
        default="",
        description="Address seeded as the sole admin on first start",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("admin_address")
    @classmethod
    def _check_admin_address(cls, v: str) -> str:
        v = v.strip()
        if not v:
            return ""
        if not validate_address(v):
            msg = "admin_address must be 0x followed by 40 hex characters"
            raise ValueError(msg)
        return v.lower()

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
