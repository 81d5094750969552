"""
Centralized configuration with environment variable overrides.

Scheduling policy, storage, catalog and API settings live here. Scheduling
code reads these values instead of hardcoding windows or timeouts.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("memory", "sql")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ScheduleConfig:
    """Slot generation policy."""

    fallback_start_hour: int = _safe_int("FALLBACK_START_HOUR", "9")
    fallback_end_hour: int = _safe_int("FALLBACK_END_HOUR", "17")
    default_duration_hours: float = _safe_float("DEFAULT_DURATION_HOURS", "1.0")
    slot_interval_minutes: int = _safe_int("SLOT_INTERVAL_MINUTES", "30")


@dataclass(frozen=True)
class StorageConfig:
    """Booking store selection."""

    backend: str = os.getenv("BOOKING_STORE", "memory")
    database_url: str = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./tradetrack.db")


@dataclass(frozen=True)
class CatalogConfig:
    """Listings collaborator. Without a URL the seeded in-memory catalog is used."""

    url: Optional[str] = os.getenv("CATALOG_URL") or None
    timeout_seconds: float = _safe_float("CATALOG_TIMEOUT", "3.0")


@dataclass(frozen=True)
class ApiConfig:
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = _safe_int("API_PORT", "8000")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "TradeTrack Scheduling")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "$")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    schedule = config.schedule
    for name, hour in [
        ("FALLBACK_START_HOUR", schedule.fallback_start_hour),
        ("FALLBACK_END_HOUR", schedule.fallback_end_hour),
    ]:
        if not 0 <= hour <= 23:
            raise ValueError(f"{name} must be between 0 and 23, got {hour}")

    if schedule.fallback_start_hour >= schedule.fallback_end_hour:
        raise ValueError(
            "FALLBACK_START_HOUR must be before FALLBACK_END_HOUR, "
            f"got {schedule.fallback_start_hour}-{schedule.fallback_end_hour}"
        )
    if schedule.default_duration_hours <= 0:
        raise ValueError(
            f"DEFAULT_DURATION_HOURS must be > 0, got {schedule.default_duration_hours}"
        )
    if not 0 < schedule.slot_interval_minutes <= 60 or 60 % schedule.slot_interval_minutes:
        raise ValueError(
            "SLOT_INTERVAL_MINUTES must divide an hour evenly, "
            f"got {schedule.slot_interval_minutes}"
        )

    if config.storage.backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"BOOKING_STORE must be one of {STORAGE_BACKENDS}, got {config.storage.backend!r}"
        )
    if config.catalog.timeout_seconds <= 0:
        raise ValueError(
            f"CATALOG_TIMEOUT must be > 0, got {config.catalog.timeout_seconds}"
        )
    if not 0 < config.api.port < 65536:
        raise ValueError(f"API_PORT must be a valid port, got {config.api.port}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
