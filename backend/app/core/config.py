"""Configuration settings for the cluster analytics backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class AuthMode:
    """Ingestion authentication mode, resolved once at startup.

    ``token is None`` means the gateway is open and accepts every request.
    """

    token: Optional[str] = None

    @classmethod
    def open(cls) -> "AuthMode":
        return cls(token=None)

    @classmethod
    def secret(cls, token: str) -> "AuthMode":
        return cls(token=token)

    @property
    def is_open(self) -> bool:
        return self.token is None

    @property
    def name(self) -> str:
        return "open" if self.is_open else "secret"

    def __repr__(self) -> str:
        # Never leak the shared secret into logs
        return f"AuthMode({self.name})"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    postgres_db: str = Field(default="analytics_db")
    postgres_user: str = Field(default="analytics_user")
    postgres_password: str = Field(default="dev_password")
    postgres_host: str = Field(default="postgres")
    postgres_port: int = Field(default=5432)
    db_command_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for a single database command",
    )

    @property
    def database_url(self) -> str:
        """Construct async database URL from components."""
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Application Configuration
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # CORS Configuration
    cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [
            origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
        ]

    # Ingestion authentication
    analytics_api_key: Optional[str] = Field(
        default=None,
        description="Shared secret expected as 'Authorization: Bearer <key>'. "
        "When unset the gateway accepts all requests.",
    )
    ingest_rate_limit: str = Field(default="600/minute")

    # Address hashing
    ip_hash_salt: str = Field(
        default="newlife",
        description="Key for the keyed hash applied to network addresses",
    )
    store_raw_addresses: bool = Field(default=True)

    # Alerting
    alert_cooldown_seconds: float = Field(default=3.0, ge=0)
    notification_webhook_url: Optional[str] = Field(default=None)
    notification_timeout_seconds: float = Field(default=5.0, gt=0)
    handler_timeout_seconds: float = Field(default=15.0, gt=0)

    # Retention
    connection_retention_days: int = Field(default=14, ge=1)
    tick_sample_retention_days: int = Field(default=7, ge=1)
    impact_retention_days: int = Field(default=7, ge=1)
    lag_finding_retention_days: int = Field(default=30, ge=1)
    chunk_record_retention_days: int = Field(default=14, ge=1)
    retention_sweeper_enabled: bool = Field(default=True)
    retention_sweep_interval_seconds: int = Field(default=3600, ge=1)

    @field_validator("analytics_api_key", "notification_webhook_url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings from .env files as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def auth_mode(self) -> AuthMode:
        """Resolve the ingestion authentication mode."""
        if self.analytics_api_key is None:
            return AuthMode.open()
        return AuthMode.secret(self.analytics_api_key)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="forbid",
    )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Create a global settings instance lazily
settings: Settings | None = None


def get_global_settings() -> Settings:
    """Get or create the global settings instance."""
    global settings
    if settings is None:
        settings = get_settings()
    return settings
