"""Application settings and configuration."""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
import os
from dotenv import load_dotenv

from .constants import DEFAULT_PAGE_SIZE, MAX_PRICE_INPUT

# Load environment variables from .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


@dataclass
class DatabaseConfig:
    """Local DuckDB catalog and key-value store settings."""

    path: Path = field(
        default_factory=lambda: Path(
            os.getenv("FURNISH_DB_PATH", str(PROJECT_ROOT / "data" / "furnish.duckdb"))
        )
    )
    read_only: bool = False
    memory_limit: str = "1GB"
    threads: int = -1  # Use all available threads


@dataclass
class BackendConfig:
    """Hosted backend (PostgREST) settings."""

    url: Optional[str] = field(default_factory=lambda: os.getenv("SUPABASE_URL"))
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("SUPABASE_ANON_KEY"))
    table: str = field(default_factory=lambda: os.getenv("FURNITURE_TABLE", "furniture"))
    timeout: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT_SECONDS", "15"))
    )
    max_attempts: int = field(
        default_factory=lambda: int(os.getenv("REQUEST_MAX_ATTEMPTS", "3"))
    )

    @property
    def rest_url(self) -> Optional[str]:
        """Base REST endpoint, or None when the backend is not configured."""
        if not self.url:
            return None
        return f"{self.url.rstrip('/')}/rest/v1"


@dataclass
class AppConfig:
    """Application configuration settings."""

    name: str = field(default_factory=lambda: os.getenv("APP_NAME", "Furnish"))
    version: str = field(default_factory=lambda: os.getenv("APP_VERSION", "1.0.0"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    page_size: int = field(
        default_factory=lambda: int(os.getenv("PAGE_SIZE", str(DEFAULT_PAGE_SIZE)))
    )
    max_price: int = field(
        default_factory=lambda: int(os.getenv("MAX_PRICE", str(MAX_PRICE_INPUT)))
    )
    cache_ttl: int = field(
        default_factory=lambda: int(os.getenv("QUERY_CACHE_TTL_SECONDS", "300"))
    )
    storage_key: str = field(
        default_factory=lambda: os.getenv("FILTER_STORAGE_KEY", "product-filter-storage")
    )


@dataclass
class Config:
    """Main configuration container."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    app: AppConfig = field(default_factory=AppConfig)

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.database.path.parent.mkdir(parents=True, exist_ok=True)


# Global config instance
config = Config()
