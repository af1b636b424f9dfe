"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_database_settings() -> "DatabaseSettings":
    """Build database settings from environment.

    Pydantic Settings (v2) populates values from environment variables;
    building through a factory keeps nested groups reading the environment
    at construction time rather than at import time.
    """

    return DatabaseSettings()


def _build_server_settings() -> "ServerSettings":
    return ServerSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class DatabaseSettings(BaseSettings):
    """Waitlist store connection configuration.

    The URL is any SQLAlchemy async URL. The local development fallback is a
    SQLite file next to the working directory; ``sqlite+aiosqlite://`` gives a
    process-local in-memory database (used by the test suite).
    """

    url: str = Field(
        "sqlite+aiosqlite:///./farmtech-waitlist.db",
        description="SQLAlchemy async database URL (DATABASE_URL)",
    )
    echo: bool = Field(
        False,
        description="Echo emitted SQL statements (debugging only)",
    )
    require_on_startup: bool = Field(
        False,
        description="Abort startup when the store cannot be initialized",
    )

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        case_sensitive=False,
    )


class ServerSettings(BaseSettings):
    """Listen address for the bundled uvicorn runner."""

    host: str = Field(
        "0.0.0.0",
        description="Interface to bind",
    )
    port: int = Field(
        3000,
        description="Listen port (SERVER_PORT or PORT)",
        validation_alias=AliasChoices("SERVER_PORT", "PORT"),
        ge=1,
        le=65535,
    )

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    admin_api_key_required: bool = Field(
        True,
        description="Whether the admin entries listing requires an API key",
    )
    admin_api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid admin API keys",
    )
    cors_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins ('*' for any)",
    )
    static_dir: str | None = Field(
        None,
        description="Directory holding the landing page (defaults to app/static)",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable rate limiting on the signup endpoint",
    )
    rate_limit_requests: int = Field(
        5,
        description="Maximum number of signup requests allowed per window (per client IP)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        15 * 60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    database: DatabaseSettings = Field(default_factory=_build_database_settings)
    server: ServerSettings = Field(default_factory=_build_server_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
