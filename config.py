"""Configuration management with environment variable support."""

import logging
import os
import secrets
from dataclasses import dataclass, field


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _parse_optional_int(name: str) -> int | None:
    """Parse an integer environment variable where empty means unset."""
    value = os.getenv(name, "").strip()
    return int(value) if value else None


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("REDIS_ENABLED", "true").lower() == "true"
    )
    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class TableConfig:
    """Default table configuration."""

    seats: int = field(default_factory=lambda: int(os.getenv("TABLE_SEATS", "2")))
    starting_balance: int = field(
        default_factory=lambda: int(os.getenv("TABLE_STARTING_BALANCE", "1000"))
    )
    min_bet: int = field(default_factory=lambda: int(os.getenv("TABLE_MIN_BET", "1")))
    max_bet: int | None = field(default_factory=lambda: _parse_optional_int("TABLE_MAX_BET"))
    blackjack_payout: float = 1.5
    dealer_stands_on: int = 17
    dealer_hits_soft_17: bool = field(
        default_factory=lambda: os.getenv("TABLE_DEALER_HITS_SOFT_17", "false").lower() == "true"
    )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds

    redis: RedisConfig = field(default_factory=RedisConfig)
    table: TableConfig = field(default_factory=TableConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def configure_logging(logging_config: LoggingConfig | None = None) -> None:
    """Apply the configured log level and format to the root logger."""
    logging_config = logging_config or config.logging
    level = logging.DEBUG if config.debug else logging_config.level
    logging.basicConfig(level=level, format=logging_config.format)
    logging.getLogger().setLevel(level)


# Global configuration instance
config = AppConfig()
