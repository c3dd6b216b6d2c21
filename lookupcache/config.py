"""lookupcache configuration management.

Loads configuration from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class DBConfig:
    """Database connection configuration."""

    url: str
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class CacheConfig:
    """Intern cache behaviour."""

    preload: bool = False  # Warm every cache from the store at startup
    size_warning: int = 10_000  # Caches never evict; warn once past this size
    tables_file: Path | None = None


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    db: DBConfig
    log_level: str = "INFO"
    json_logs: bool = False

    cache: CacheConfig = field(default_factory=CacheConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - DATABASE_URL: SQLAlchemy async connection string

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - JSON_LOGS: Render logs as JSON (default: "false")
        - LOOKUP_TABLES_FILE: YAML file declaring lookup tables
        - LOOKUP_PRELOAD: Warm caches at startup (default: "false")
        - LOOKUP_SIZE_WARNING: Cache size that triggers a warning (default: 10000)

        Raises:
            KeyError: If required environment variables are missing
        """
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required. "
                "Example: sqlite+aiosqlite:///./lookups.db"
            )

        tables_file = os.getenv("LOOKUP_TABLES_FILE")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=_env_bool("JSON_LOGS"),
            db=DBConfig(
                url=database_url,
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=_env_bool("DB_ECHO"),
            ),
            cache=CacheConfig(
                preload=_env_bool("LOOKUP_PRELOAD"),
                size_warning=int(os.getenv("LOOKUP_SIZE_WARNING", "10000")),
                tables_file=Path(tables_file) if tables_file else None,
            ),
        )

    @property
    def config_root(self) -> Path:
        """Root directory for configuration files."""
        return Path(__file__).parent.parent / "config"

    @property
    def tables_config_path(self) -> Path:
        """Path to the lookup table declarations."""
        return self.cache.tables_file or self.config_root / "lookup_tables.yaml"


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached AppConfig so the next get_config() re-reads the environment."""
    global _config
    _config = None
