"""
Shared configuration management for the Trakt Edge Gateway.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationMissingError


def _env(name: str, field_name: str) -> AliasChoices:
    return AliasChoices(name, field_name)


@dataclass(frozen=True)
class TraktCredentials:
    """OAuth client credentials for the Trakt API plus the caller secret."""

    client_id: str
    client_secret: str
    expected_caller_key: Optional[str] = None


@dataclass(frozen=True)
class TmdbCredentials:
    """API key for the TMDB catalog API."""

    api_key: str


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=_env("ACCESS_ENV", "env"))
    log_level: str = Field(default="info", validation_alias=_env("ACCESS_LOG_LEVEL", "log_level"))


class GatewayConfig(BaseConfig):
    """Configuration for the edge gateway, loaded once at process start."""

    service_name: str = "trakt_proxy"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, validation_alias=_env("ACCESS_PORT", "port"))

    # Upstream credentials
    trakt_client_id: Optional[str] = Field(default=None, validation_alias=_env("TRAKT_CLIENT_ID", "trakt_client_id"))
    trakt_client_secret: Optional[str] = Field(
        default=None, validation_alias=_env("TRAKT_CLIENT_SECRET", "trakt_client_secret")
    )
    tmdb_api_key: Optional[str] = Field(default=None, validation_alias=_env("TMDB_API_KEY", "tmdb_api_key"))

    # Shared secret expected from the calling application
    app_anon_key: Optional[str] = Field(default=None, validation_alias=_env("APP_ANON_KEY", "app_anon_key"))

    # Upstream endpoints
    trakt_base_url: str = Field(default="https://api.trakt.tv", validation_alias=_env("TRAKT_BASE_URL", "trakt_base_url"))
    tmdb_base_url: str = Field(
        default="https://api.themoviedb.org/3", validation_alias=_env("TMDB_BASE_URL", "tmdb_base_url")
    )
    upstream_timeout_seconds: float = Field(
        default=30.0, validation_alias=_env("UPSTREAM_TIMEOUT_SECONDS", "upstream_timeout_seconds")
    )

    # Rate limiting
    rate_limit_requests: int = Field(default=100, validation_alias=_env("RATE_LIMIT_REQUESTS", "rate_limit_requests"))
    rate_limit_window_ms: int = Field(
        default=60_000, validation_alias=_env("RATE_LIMIT_WINDOW_MS", "rate_limit_window_ms")
    )
    rate_limit_sweep_interval_ms: int = Field(
        default=60_000, validation_alias=_env("RATE_LIMIT_SWEEP_INTERVAL_MS", "rate_limit_sweep_interval_ms")
    )
    # Key the limiter on forwarding headers; disable unless a trusted proxy sets them.
    trust_forwarded_headers: bool = Field(
        default=True, validation_alias=_env("TRUST_FORWARDED_HEADERS", "trust_forwarded_headers")
    )

    def trakt_credentials(self) -> TraktCredentials:
        """Return the Trakt client credentials or raise if either is unset."""
        if not self.trakt_client_id or not self.trakt_client_secret:
            raise ConfigurationMissingError("Trakt credentials not configured")
        return TraktCredentials(
            client_id=self.trakt_client_id,
            client_secret=self.trakt_client_secret,
            expected_caller_key=self.app_anon_key,
        )

    def tmdb_credentials(self) -> TmdbCredentials:
        """Return the TMDB API key or raise if it is unset."""
        if not self.tmdb_api_key:
            raise ConfigurationMissingError("TMDB_API_KEY not configured")
        return TmdbCredentials(api_key=self.tmdb_api_key)


def get_config(**overrides) -> GatewayConfig:
    """Build the gateway configuration from the environment."""
    return GatewayConfig(**overrides)
