"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATABASE_PATH = PROJECT_ROOT / "data" / "stories.db"
DEFAULT_EXPORT_PATH = PROJECT_ROOT / "data" / "exports"
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    database_path: Path = Field(
        default=DEFAULT_DATABASE_PATH, description="SQLite file holding saved stories"
    )
    export_base_path: Path = Field(
        default=DEFAULT_EXPORT_PATH, description="Directory receiving JSON exports"
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: DEFAULT_CORS_ORIGINS.split(","),
        description="Origins allowed to call the API from a browser",
    )
    seed_demo_story: bool = Field(
        default=True, description="Store a sample story on startup when none exist"
    )

    @field_validator("database_path", "export_base_path", mode="before")
    @classmethod
    def _normalize_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("Path settings cannot be empty")
        if isinstance(value, Path):
            path = value
        else:
            path = Path(value)
        return path.expanduser().resolve()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str] | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    database_path = _read_env("STORY_DB_PATH", str(DEFAULT_DATABASE_PATH))
    export_path = _read_env("STORY_EXPORT_PATH", str(DEFAULT_EXPORT_PATH))
    cors_origins = _read_env("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    seed_demo_story = _read_env("SEED_DEMO_STORY", "true").lower() not in {
        "0",
        "false",
        "no",
    }

    config = AppConfig(
        database_path=database_path,
        export_base_path=export_path,
        cors_origins=cors_origins,
        seed_demo_story=seed_demo_story,
    )
    # Exports are written on demand; make sure the target exists.
    config.export_base_path.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "PROJECT_ROOT",
    "DEFAULT_DATABASE_PATH",
    "DEFAULT_EXPORT_PATH",
]
