"""Project configuration and paths.

Loads settings from config/settings.yaml and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# === Paths ===
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = PROJECT_ROOT / "data"
DATA_EXPORTS_DIR = DATA_DIR / "exports"

# Load .env from project root
load_dotenv(PROJECT_ROOT / ".env")


class YourlsSettings(BaseModel):
    """Settings for the YOURLS shortening API."""
    api_url: str = "https://smkt.us/yourls-api.php"
    request_timeout: float = 15.0
    min_request_interval_seconds: float = 0.1


class RotationSettings(BaseModel):
    """Settings for marker rotation."""
    link_domain: str = "aviasales.ru"
    history_window: int = Field(default=500, ge=1, le=1000)
    max_batch_size: int = Field(default=100, ge=1, le=100)
    percentage_tolerance: float = Field(default=1.0, gt=0)


class DatabaseSettings(BaseModel):
    """Database connection settings."""
    db_path: str = str(DATA_DIR / "link_rotator.db")


class Settings(BaseModel):
    """Top-level application settings."""
    yourls: YourlsSettings = Field(default_factory=YourlsSettings)
    rotation: RotationSettings = Field(default_factory=RotationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @classmethod
    def load(cls, settings_path: Path | None = None) -> Settings:
        """Load settings from config/settings.yaml, falling back to defaults.

        Environment variables override file values:
        YOURLS_API_URL, LINK_DOMAIN, LINK_ROTATOR_DB_PATH.
        """
        settings_path = settings_path or CONFIG_DIR / "settings.yaml"
        data: dict = {}
        if settings_path.exists():
            with open(settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        loaded = cls(**data)

        if url := os.getenv("YOURLS_API_URL"):
            loaded.yourls.api_url = url
        if domain := os.getenv("LINK_DOMAIN"):
            loaded.rotation.link_domain = domain
        if db_path := os.getenv("LINK_ROTATOR_DB_PATH"):
            loaded.database.db_path = db_path
        return loaded


def get_yourls_signature() -> str:
    """Get the YOURLS signature token from environment."""
    token = os.getenv("YOURLS_SIGNATURE_TOKEN", "")
    if not token:
        raise ValueError("YOURLS_SIGNATURE_TOKEN not set in environment")
    return token


# Singleton settings instance
settings = Settings.load()
