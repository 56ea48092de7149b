"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
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
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_db_settings() -> "DatabaseSettings":
    return DatabaseSettings()  # type: ignore[call-arg]


def _build_auth_settings() -> "AuthSettings":
    return AuthSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: 'json' or 'plain'")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Relational storage configuration (any SQLAlchemy URL)."""

    url: str = Field(
        "sqlite:///./portal.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(False, description="Echo SQL statements to the log")
    create_all: bool = Field(
        True,
        description="Create missing tables on startup (disable when migrations own the schema)",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Bearer token verification for the admin console.

    Tokens are issued by the external identity provider; this service only
    verifies them and checks the role claim.
    """

    jwt_secret: str = Field(
        "dev-change-this-secret",
        description="Shared secret used to verify access tokens",
    )
    jwt_algorithm: str = Field("HS256", description="JWT signing algorithm")
    admin_roles: str = Field(
        "GENERAL_MANAGER,NEWS_EDITOR,REQUEST_REVIEWER",
        description="Comma-separated list of roles allowed on admin endpoints",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-profile rate limiting",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_api_points: int = Field(100, ge=1)
    rate_limit_api_duration_seconds: int = Field(60, ge=1)
    rate_limit_api_block_seconds: int = Field(60, ge=0)
    rate_limit_auth_points: int = Field(5, ge=1)
    rate_limit_auth_duration_seconds: int = Field(900, ge=1)
    rate_limit_auth_block_seconds: int = Field(900, ge=0)
    rate_limit_submission_points: int = Field(10, ge=1)
    rate_limit_submission_duration_seconds: int = Field(3600, ge=1)
    rate_limit_submission_block_seconds: int = Field(3600, ge=0)
    rate_limit_admin_points: int = Field(200, ge=1)
    rate_limit_admin_duration_seconds: int = Field(60, ge=1)
    rate_limit_admin_block_seconds: int = Field(60, ge=0)

    public_page_size_max: int = Field(
        50,
        description="Upper bound for the 'limit' query parameter on public listings",
        ge=1,
    )
    admin_page_size_max: int = Field(
        100,
        description="Upper bound for the 'limit' query parameter on admin search",
        ge=1,
    )
    export_max_rows: int = Field(
        1000,
        description="Maximum number of rows returned by a single export",
        ge=1,
    )

    cache_public_ttl_seconds: int = Field(
        300,
        description="TTL for cached public listings",
        ge=1,
    )
    cache_admin_ttl_seconds: int = Field(
        60,
        description="TTL for cached admin data (stats)",
        ge=1,
    )
    cache_sweep_interval_seconds: float = Field(
        60.0,
        description="Interval between background sweeps of expired cache entries",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
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
    app: AppSettings = Field(default_factory=_build_app_settings)
    db: DatabaseSettings = Field(default_factory=_build_db_settings)
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
