# core/config.py
import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Settings:
    """Runtime settings read from the environment.

    Every value has a default so a fresh checkout runs against a local
    SQLite file without any configuration.
    """
    database_url: str = "sqlite:///shelfmate.db"
    log_level: str = "INFO"
    cache_default_ttl: int = 300
    cors_origins: List[str] = field(default_factory=lambda: [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ])

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls()
        settings.database_url = os.getenv("DATABASE_URL", settings.database_url)
        settings.log_level = os.getenv("SHELFMATE_LOG_LEVEL", settings.log_level).upper()
        ttl = os.getenv("SHELFMATE_CACHE_DEFAULT_TTL")
        if ttl:
            settings.cache_default_ttl = int(ttl)
        origins = os.getenv("SHELFMATE_CORS_ORIGINS")
        if origins:
            settings.cors_origins = _split_origins(origins)
        return settings
