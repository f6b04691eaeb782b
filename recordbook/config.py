"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

The five connection values (server, port, database, user, password) are
only required when STORE_BACKEND=sqlserver. Missing or malformed values
raise ConfigError, which the app factory lets propagate: a store we cannot
reach is a startup failure, not a per-request one.

Usage:
    from recordbook.config import get_settings
    settings = get_settings()
    print(settings.store_backend)  # "memory"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from recordbook.errors import RecordbookError

# .env is read from the project root only, never from parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"

STORE_BACKENDS = ("memory", "sqlserver")


class ConfigError(RecordbookError):
    """Configuration is missing or invalid. Fatal at startup."""


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection values for the SQL Server store.

    Empty strings mean "not configured"; require_complete() turns that
    into a ConfigError.
    """

    server: str
    port: int
    name: str
    user: str
    password: str
    driver: str
    trust_server_certificate: bool

    def missing(self) -> list[str]:
        """Returns the env var names of every unset required value."""
        required = {
            "DB_SERVER": self.server,
            "DB_NAME": self.name,
            "DB_USER": self.user,
            "DB_PASSWORD": self.password,
        }
        return [env_var for env_var, value in required.items() if not value]

    def require_complete(self) -> None:
        """Raises ConfigError if any required connection value is unset."""
        missing = self.missing()
        if missing:
            raise ConfigError(
                f"Missing database configuration: {', '.join(missing)}. "
                "Set them in .env or the environment."
            )


@dataclass(frozen=True)
class Settings:
    """Typed configuration for Recordbook.

    All fields have sensible defaults for local development against the
    in-memory store.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Store
    store_backend: str
    database: DatabaseSettings


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_int(env_var: str, value: str) -> int:
    """Parses an integer env var, naming the variable on failure.

    Raises:
        ConfigError: If the value is not an integer.
    """
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Invalid value for {env_var}: {value!r}. Expected an integer.") from None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _resolve_backend(value: str) -> str:
    """Validates STORE_BACKEND against the known backends.

    Raises:
        ConfigError: If the value names no known backend.
    """
    backend = value.strip().lower()
    if backend in STORE_BACKENDS:
        return backend
    valid = ", ".join(STORE_BACKENDS)
    raise ConfigError(f"Invalid value for STORE_BACKEND: {value!r}. Valid options: {valid}")


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.

    Raises:
        ConfigError: On a malformed value, or on missing connection values
            when the sqlserver backend is selected.
    """
    load_dotenv(_DOTENV_PATH)

    database = DatabaseSettings(
        server=os.environ.get("DB_SERVER", ""),
        port=_parse_int("DB_PORT", os.environ.get("DB_PORT", "1433")),
        name=os.environ.get("DB_NAME", ""),
        user=os.environ.get("DB_USER", ""),
        password=os.environ.get("DB_PASSWORD", ""),
        driver=os.environ.get("DB_DRIVER", "ODBC Driver 18 for SQL Server"),
        trust_server_certificate=_parse_bool(os.environ.get("DB_TRUST_CERT", "false")),
    )
    store_backend = _resolve_backend(os.environ.get("STORE_BACKEND", "memory"))
    if store_backend == "sqlserver":
        database.require_complete()

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=_parse_int("APP_PORT", os.environ.get("APP_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(os.environ.get("CORS_ORIGINS", "http://localhost:5173")),
        # Store
        store_backend=store_backend,
        database=database,
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
