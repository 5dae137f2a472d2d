"""
Event Sources - Configuration.

============================================================
CONFIGURABLE COLLECTION
============================================================

Global settings:
- Request timeout, base rate limit, fan-out concurrency
- Per-source cycle timeout
- Inter-variant delay range
- Whether the SIMULATED path is merged into real results
- Cache capacity, log level, strength history database

Per-source settings (<NAME> is the upper-cased source name):
- <NAME>_API_KEY
- <NAME>_RATE_LIMIT_RPM
- <NAME>_TIMEOUT_SECONDS
- <NAME>_ENABLED

A missing API key never aborts the process; the source simply
reports itself unavailable for the cycle.

Configuration can be loaded from:
- Default values
- Environment variables (a .env file is honoured)
- YAML config file

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from normalization.models import SUPPORTED_CURRENCIES


logger = logging.getLogger(__name__)


# =============================================================
# SOURCE NAMES
# =============================================================

FOREXFACTORY = "forexfactory"
FOREXFACTORY_FEED = "forexfactory_feed"
INVESTING = "investing"
FXSTREET = "fxstreet"
YAHOO_FINANCE = "yahoo_finance"
MARKETWATCH = "marketwatch"
TRADINGECONOMICS = "tradingeconomics"
FRED = "fred"
NEWSAPI = "newsapi"
ALPHA_VANTAGE = "alpha_vantage"
SIMULATED = "simulated"

SOURCE_NAMES: tuple[str, ...] = (
    FOREXFACTORY,
    FOREXFACTORY_FEED,
    INVESTING,
    FXSTREET,
    YAHOO_FINANCE,
    MARKETWATCH,
    TRADINGECONOMICS,
    FRED,
    NEWSAPI,
    ALPHA_VANTAGE,
    SIMULATED,
)

# Sources that stay off unless explicitly enabled.
DISABLED_BY_DEFAULT = frozenset({SIMULATED})

DEFAULT_CURRENCIES: tuple[str, ...] = ("EUR", "USD", "JPY", "GBP", "CAD")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# =============================================================
# ENV HELPERS
# =============================================================


def _env_bool(name: str, default: Optional[bool]) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring invalid boolean {name}={raw!r}")
    return default


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid integer {name}={raw!r}")
        return default


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid number {name}={raw!r}")
        return default


# =============================================================
# SOURCE CONFIG
# =============================================================


@dataclass
class SourceConfig:
    """Settings for one source adapter. None means "use the global value"."""
    name: str
    enabled: bool = True
    api_key: Optional[str] = None
    rate_limit_rpm: Optional[int] = None
    timeout_seconds: Optional[float] = None

    @property
    def env_prefix(self) -> str:
        return self.name.upper()

    @classmethod
    def from_env(cls, name: str) -> "SourceConfig":
        prefix = name.upper()
        return cls(
            name=name,
            enabled=_env_bool(f"{prefix}_ENABLED", name not in DISABLED_BY_DEFAULT),
            api_key=os.getenv(f"{prefix}_API_KEY") or None,
            rate_limit_rpm=_env_int(f"{prefix}_RATE_LIMIT_RPM", None),
            timeout_seconds=_env_float(f"{prefix}_TIMEOUT_SECONDS", None),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "has_api_key": bool(self.api_key),
            "rate_limit_rpm": self.rate_limit_rpm,
            "timeout_seconds": self.timeout_seconds,
        }


# =============================================================
# MAIN CONFIGURATION
# =============================================================


@dataclass
class CollectionConfig:
    """
    Main configuration for collection and scoring.

    Combines global settings with one SourceConfig per adapter.
    """
    # HTTP
    timeout_seconds: float = 20.0
    rate_limit_rpm: int = 60

    # Fan-out
    max_concurrency: int = 4
    source_timeout_seconds: float = 120.0

    # Scraping etiquette between variants of one source
    delay_min_seconds: float = 1.0
    delay_max_seconds: float = 3.0

    # SIMULATED path
    include_simulated: bool = False

    # Bounded cache
    cache_capacity: int = 100
    cache_max_keys: int = 64

    # Scoring universe
    currencies: list[str] = field(default_factory=lambda: list(DEFAULT_CURRENCIES))

    # Ambient
    log_level: str = "INFO"
    strength_database_url: Optional[str] = None

    sources: dict[str, SourceConfig] = field(default_factory=dict)

    @property
    def delay_range(self) -> tuple[float, float]:
        return (self.delay_min_seconds, self.delay_max_seconds)

    def source(self, name: str) -> SourceConfig:
        """Settings for a source, defaulting when it was never configured."""
        if name not in self.sources:
            self.sources[name] = SourceConfig(
                name=name,
                enabled=name not in DISABLED_BY_DEFAULT,
            )
        return self.sources[name]

    def timeout_for(self, name: str) -> float:
        return self.source(name).timeout_seconds or self.timeout_seconds

    def rate_limit_for(self, name: str) -> int:
        return self.source(name).rate_limit_rpm or self.rate_limit_rpm

    @classmethod
    def from_env(cls) -> "CollectionConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - COLLECTION_TIMEOUT_SECONDS
        - COLLECTION_RATE_LIMIT_RPM
        - COLLECTION_MAX_CONCURRENCY
        - COLLECTION_SOURCE_TIMEOUT_SECONDS
        - COLLECTION_DELAY_MIN_SECONDS
        - COLLECTION_DELAY_MAX_SECONDS
        - COLLECTION_INCLUDE_SIMULATED
        - COLLECTION_CACHE_CAPACITY
        - COLLECTION_CURRENCIES (comma separated)
        - LOG_LEVEL
        - STRENGTH_DATABASE_URL
        - <SOURCE>_API_KEY / _RATE_LIMIT_RPM / _TIMEOUT_SECONDS / _ENABLED
        """
        load_dotenv()
        config = cls()

        config.timeout_seconds = _env_float("COLLECTION_TIMEOUT_SECONDS", config.timeout_seconds)
        config.rate_limit_rpm = _env_int("COLLECTION_RATE_LIMIT_RPM", config.rate_limit_rpm)
        config.max_concurrency = _env_int("COLLECTION_MAX_CONCURRENCY", config.max_concurrency)
        config.source_timeout_seconds = _env_float(
            "COLLECTION_SOURCE_TIMEOUT_SECONDS", config.source_timeout_seconds
        )
        config.delay_min_seconds = _env_float("COLLECTION_DELAY_MIN_SECONDS", config.delay_min_seconds)
        config.delay_max_seconds = _env_float("COLLECTION_DELAY_MAX_SECONDS", config.delay_max_seconds)
        config.include_simulated = _env_bool("COLLECTION_INCLUDE_SIMULATED", config.include_simulated)
        config.cache_capacity = _env_int("COLLECTION_CACHE_CAPACITY", config.cache_capacity)

        if os.getenv("COLLECTION_CURRENCIES"):
            config.currencies = [
                code.strip().upper()
                for code in os.getenv("COLLECTION_CURRENCIES", "").split(",")
                if code.strip()
            ]

        config.log_level = os.getenv("LOG_LEVEL", config.log_level).upper()
        config.strength_database_url = os.getenv("STRENGTH_DATABASE_URL") or None

        for name in SOURCE_NAMES:
            config.sources[name] = SourceConfig.from_env(name)

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "CollectionConfig":
        """Load configuration from a YAML file; defaults on failure."""
        try:
            import yaml
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}

            config = cls()

            collection = data.get("collection", {})
            for key in (
                "timeout_seconds",
                "rate_limit_rpm",
                "max_concurrency",
                "source_timeout_seconds",
                "delay_min_seconds",
                "delay_max_seconds",
                "include_simulated",
                "cache_capacity",
                "cache_max_keys",
            ):
                if key in collection:
                    setattr(config, key, collection[key])

            if "currencies" in data:
                config.currencies = [str(c).upper() for c in data["currencies"]]
            if "log_level" in data:
                config.log_level = str(data["log_level"]).upper()
            if "strength_database_url" in data:
                config.strength_database_url = data["strength_database_url"]

            for name, settings in (data.get("sources") or {}).items():
                settings = settings or {}
                config.sources[name] = SourceConfig(
                    name=name,
                    enabled=settings.get("enabled", name not in DISABLED_BY_DEFAULT),
                    api_key=settings.get("api_key"),
                    rate_limit_rpm=settings.get("rate_limit_rpm"),
                    timeout_seconds=settings.get("timeout_seconds"),
                )

            return config

        except Exception as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def validate(self) -> list[str]:
        """Return a list of configuration errors (empty when valid)."""
        errors: list[str] = []

        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")
        if self.rate_limit_rpm <= 0:
            errors.append("rate_limit_rpm must be positive")
        if self.max_concurrency < 1:
            errors.append("max_concurrency must be at least 1")
        if self.source_timeout_seconds <= 0:
            errors.append("source_timeout_seconds must be positive")
        if self.delay_min_seconds < 0 or self.delay_max_seconds < self.delay_min_seconds:
            errors.append("delay range must satisfy 0 <= min <= max")
        if self.cache_capacity < 1 or self.cache_max_keys < 1:
            errors.append("cache capacity and max keys must be at least 1")

        unsupported = [c for c in self.currencies if c not in SUPPORTED_CURRENCIES]
        if unsupported:
            errors.append(f"unsupported currencies: {', '.join(unsupported)}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"invalid log_level: {self.log_level}")

        for name, source in self.sources.items():
            if source.rate_limit_rpm is not None and source.rate_limit_rpm <= 0:
                errors.append(f"{name}: rate_limit_rpm must be positive")
            if source.timeout_seconds is not None and source.timeout_seconds <= 0:
                errors.append(f"{name}: timeout_seconds must be positive")

        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (API keys are reported as presence only)."""
        return {
            "timeout_seconds": self.timeout_seconds,
            "rate_limit_rpm": self.rate_limit_rpm,
            "max_concurrency": self.max_concurrency,
            "source_timeout_seconds": self.source_timeout_seconds,
            "delay_range": list(self.delay_range),
            "include_simulated": self.include_simulated,
            "cache_capacity": self.cache_capacity,
            "cache_max_keys": self.cache_max_keys,
            "currencies": self.currencies,
            "log_level": self.log_level,
            "sources": {name: s.to_dict() for name, s in self.sources.items()},
        }


# =============================================================
# GLOBAL CONFIG SINGLETON
# =============================================================


_default_config: Optional[CollectionConfig] = None


def get_config() -> CollectionConfig:
    """Get the global collection configuration."""
    global _default_config
    if _default_config is None:
        _default_config = CollectionConfig.from_env()
    return _default_config


def set_config(config: Optional[CollectionConfig]) -> None:
    """Set the global collection configuration."""
    global _default_config
    _default_config = config
