"""Centralized configuration management using Pydantic Settings.

This module provides typed configuration for all application settings,
loaded from environment variables with sensible defaults.

Usage:
    from beacon.config import get_settings
    settings = get_settings()
    log_path = settings.visit_log.path
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ",".join(
    [
        "https://air-therm.com",
        "http://air-therm.com",
        "https://www.air-therm.com",
        "http://www.air-therm.com",
        "http://localhost:3000",
        "https://localhost:3000",
    ]
)


def _parse_bool(v):
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes")
    return bool(v)


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="BEACON_", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Bind port")
    reload: bool = Field(default=False, description="Auto-reload on code changes")
    trust_proxy: bool = Field(
        default=True, description="Take the client IP from X-Forwarded-For"
    )
    dashboard: bool = Field(default=True, description="Serve the static dashboard")

    @field_validator("reload", "trust_proxy", "dashboard", mode="before")
    @classmethod
    def parse_flags(cls, v):
        return _parse_bool(v)


class VisitLogSettings(BaseSettings):
    """Append-only visit log configuration."""

    model_config = SettingsConfigDict(env_prefix="VISIT_LOG_", extra="ignore")

    path: str = Field(default="visits.log", description="Newline-delimited JSON log file")


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(
        default=DEFAULT_CORS_ORIGINS,
        validation_alias="CORS_ORIGINS",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into list."""
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        """Credentials not allowed with wildcard origins."""
        return self.origins != ["*"]


class GeoSettings(BaseSettings):
    """IP geolocation provider configuration."""

    model_config = SettingsConfigDict(env_prefix="GEO_", extra="ignore")

    primary_url: str = Field(
        default="https://ipwho.is/{ip}", description="Primary provider URL template"
    )
    secondary_url: str = Field(
        default="https://ipapi.co/{ip}/json/", description="Fallback provider URL template"
    )
    timeout_sec: float = Field(default=5.0, description="Per-lookup timeout in seconds")
    include_postal: bool = Field(default=True, description="Attach postal code to records")

    @field_validator("include_postal", mode="before")
    @classmethod
    def parse_include_postal(cls, v):
        return _parse_bool(v)


class GeoIPSettings(BaseSettings):
    """GeoIP configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    db_path: str = Field(default="/app/GeoLite2-City.mmdb", alias="geoip_db_path")


class WebhookSettings(BaseSettings):
    """Spreadsheet webhook forwarding configuration."""

    model_config = SettingsConfigDict(env_prefix="WEBHOOK_", extra="ignore")

    url: str = Field(default="", description="Webhook URL; empty disables forwarding")
    timeout_sec: float = Field(default=10.0, description="Forward timeout in seconds")

    @property
    def enabled(self) -> bool:
        return bool(self.url.strip())


class DebugSettings(BaseSettings):
    """Debug flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_bool(v)


class Settings:
    """Main application settings combining all configuration sections.

    This is not a BaseSettings subclass to avoid env var conflicts.
    Each subsetting is loaded independently with its own prefix.
    """

    def __init__(self) -> None:
        self.server = ServerSettings()
        self.visit_log = VisitLogSettings()
        self.cors = CorsSettings()
        self.geo = GeoSettings()
        self.geoip = GeoIPSettings()
        self.webhook = WebhookSettings()
        self.debug = DebugSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing)."""
    get_settings.cache_clear()
