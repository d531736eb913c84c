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
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_gemini_settings() -> "GeminiSettings":
    """Build Gemini settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return GeminiSettings()  # type: ignore[call-arg]


def _build_server_settings() -> "ServerSettings":
    return ServerSettings()


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def parse_origins(origins_string: str | None) -> list[str]:
    """Parse a comma-separated list of CORS origins.

    Args:
        origins_string: Comma-separated origins, or None.

    Returns:
        Ordered list of trimmed, non-empty, de-duplicated origins.

    Examples:
        >>> parse_origins("http://a.test, http://b.test")
        ['http://a.test', 'http://b.test']
        >>> parse_origins(None)
        []
    """
    if not origins_string:
        return []

    origins: list[str] = []
    for origin in origins_string.split(","):
        origin = origin.strip()
        if origin and origin not in origins:
            origins.append(origin)
    return origins


class GeminiSettings(BaseSettings):
    """Google Gemini provider configuration.

    The API key is mandatory: the service refuses to start without it.
    """

    api_key: str = Field(
        ...,
        description="Gemini API key (GEMINI_API_KEY)",
    )
    script_model: str = Field(
        "gemini-2.5-flash",
        description="Model used to write podcast scripts",
    )
    tts_model: str = Field(
        "gemini-2.5-flash-preview-tts",
        description="Model used for text-to-speech synthesis",
    )
    timeout_seconds: float = Field(
        60.0,
        description="Upstream request timeout in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        case_sensitive=False,
    )


class ServerSettings(BaseSettings):
    """HTTP server configuration (unprefixed env vars: PORT, HOST, ...)."""

    host: str = Field(
        "0.0.0.0",
        description="Interface uvicorn binds to",
    )
    port: int = Field(
        3001,
        description="Port uvicorn listens on",
        ge=1,
        le=65535,
    )
    allowed_origins: str = Field(
        "http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins ('*' allows any)",
    )
    max_body_bytes: int = Field(
        10 * 1024,
        description="Maximum accepted request body size in bytes",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        return parse_origins(self.allowed_origins)


class RateLimitSettings(BaseSettings):
    """Per-client rate limits.

    Two independent budgets: a global one applied to every route and a
    stricter one for script (episode) generation.
    """

    enabled: bool = Field(
        True,
        description="Enable rate limiting per client address",
    )
    global_requests: int = Field(
        100,
        description="Maximum requests per client per global window",
        ge=1,
    )
    global_window_seconds: int = Field(
        15 * 60,
        description="Global rate limit window size in seconds",
        ge=1,
    )
    episode_requests: int = Field(
        10,
        description="Maximum script generations per client per episode window",
        ge=1,
    )
    episode_window_seconds: int = Field(
        60 * 60,
        description="Episode rate limit window size in seconds",
        ge=1,
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: str = Field(
        "json",
        description="Log format: 'json' or 'plain'",
    )
    output: str = Field(
        "stdout",
        description="Log destination: 'stdout' or 'file'",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
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
    Raises validation errors on startup if required settings are missing
    (notably GEMINI_API_KEY).

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    gemini: GeminiSettings = Field(default_factory=_build_gemini_settings)
    server: ServerSettings = Field(default_factory=_build_server_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
