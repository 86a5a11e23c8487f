"""
Centralized configuration for the Agency Portal.

This module provides a single source of truth for all configuration values.
Configuration is loaded from environment variables with sensible defaults.

Usage:
    from core.config import config

    base_url = config.provider.base_url
    max_age = config.auth.session_max_age
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ProviderConfig:
    """Instantly (email-sending provider) API configuration."""

    base_url: str = field(
        default_factory=lambda: os.getenv("INSTANTLY_BASE_URL", "https://api.instantly.ai/api/v2")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("PROVIDER_TIMEOUT", "30"))
    )
    campaign_page_limit: int = 50
    # Per-campaign analytics are fetched one by one, so cap how many we look at
    max_campaigns: int = 10


@dataclass(frozen=True)
class StorageConfig:
    """SQLite storage configuration."""

    db_path: Path = field(
        default_factory=lambda: Path(os.getenv("PORTAL_DB_PATH", str(BASE_DIR / "data" / "portal.db")))
    )
    seed_demo_data: bool = field(default_factory=lambda: _env_bool("SEED_DEMO_DATA", True))
    demo_history_days: int = 90


@dataclass(frozen=True)
class AuthConfig:
    """Login and session configuration."""

    secret_key: str = field(default_factory=lambda: os.getenv("PORTAL_SECRET_KEY", ""))
    session_cookie: str = "portal_session"
    session_max_age: int = field(
        default_factory=lambda: int(os.getenv("SESSION_MAX_AGE_HOURS", "24")) * 60 * 60
    )
    bcrypt_rounds: int = field(default_factory=lambda: int(os.getenv("BCRYPT_ROUNDS", "12")))
    cookie_secure: bool = field(default_factory=lambda: _env_bool("COOKIE_SECURE", False))

    # Demo tenant created on first start
    demo_email: str = "demo@agency.com"
    demo_password: str = field(default_factory=lambda: os.getenv("DEMO_PASSWORD", "demo2026"))


@dataclass(frozen=True)
class WebConfig:
    """Web server configuration."""

    host: str = field(default_factory=lambda: os.getenv("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("WEB_PORT", "3340")))

    # Rate limiting
    rate_limit_enabled: bool = field(default_factory=lambda: _env_bool("RATE_LIMIT_ENABLED", True))

    # Analytics windows (days)
    default_window_days: int = 30
    detail_window_days: int = 90
    max_window_days: int = 365


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    web: WebConfig = field(default_factory=WebConfig)

    # Instantly campaign status codes
    provider_statuses: Dict[int, str] = field(default_factory=lambda: {
        0: "paused",   # draft
        1: "active",
        2: "paused",
        3: "paused",   # completed
        4: "active",   # running subsequences
    })


# Global config instance
config = AppConfig()

VERSION = config.version


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(require_secret: bool = True) -> None:
    """
    Validate that all required configuration is present.

    Call this on application startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Args:
        require_secret: If True, a session signing key must be configured

    Raises:
        ConfigurationError: If required configuration is missing
    """
    errors = []

    if require_secret and not config.auth.secret_key:
        errors.append("PORTAL_SECRET_KEY is required but not set")

    if config.auth.secret_key and len(config.auth.secret_key) < 16:
        errors.append("PORTAL_SECRET_KEY appears to be invalid (too short, need 16+ chars)")

    if config.auth.session_max_age <= 0:
        errors.append("SESSION_MAX_AGE_HOURS must be positive")

    if not 4 <= config.auth.bcrypt_rounds <= 31:
        errors.append("BCRYPT_ROUNDS must be between 4 and 31")

    if not config.provider.base_url.startswith(("http://", "https://")):
        errors.append(f"INSTANTLY_BASE_URL is not an http(s) URL: {config.provider.base_url}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
