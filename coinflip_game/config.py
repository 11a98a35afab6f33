"""
Configuration management for the coin flip game.
Supports config.json with environment variable overrides.
All paths are resolved relative to the project root.
"""

import json
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

# Project root directory (parent of the 'coinflip_game' folder)
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "config.json"


def get_env(key: str, default: str = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes", "on")


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


# ==================== Configuration Models ====================

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    name: str = "Coin Flip Game"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"


class StorageConfig(BaseModel):
    backend: str = "sqlite"  # "sqlite" or "memory"
    progress_key: str = "coinUnlockProgress"


class EngineConfig(BaseModel):
    # Relative pick weight for random faces, keyed by rarity name
    rarity_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "Common": 1.0,
            "Uncommon": 0.5,
            "Rare": 0.25,
            "Legendary": 0.1,
        }
    )
    default_chance_multiplier: float = 1.0


class PathsConfig(BaseModel):
    """All paths are relative to PROJECT_ROOT unless absolute."""
    catalog: str = "coins.json"
    database: str = "data/progress.db"
    log_file: str = "data/coinflip.log"

    def _resolve(self, value: str) -> Path:
        path = Path(value)
        return path if path.is_absolute() else PROJECT_ROOT / path

    def get_catalog_path(self) -> Path:
        return self._resolve(self.catalog)

    def get_db_path(self) -> Path:
        return self._resolve(self.database)

    def get_log_path(self) -> Path:
        return self._resolve(self.log_file)


class AppConfig(BaseModel):
    """Main application configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================

def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    if config_path is None:
        config_path = CONFIG_PATH

    data = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

    if get_env("SERVER_HOST"):
        data.setdefault("server", {})["host"] = get_env("SERVER_HOST")
    if get_env("SERVER_PORT"):
        data.setdefault("server", {})["port"] = get_env_int("SERVER_PORT", 8000)
    if get_env("DEBUG"):
        data.setdefault("server", {})["debug"] = get_env_bool("DEBUG")

    if get_env("LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = get_env("LOG_LEVEL")
    if get_env("LOG_TO_FILE"):
        data.setdefault("logging", {})["log_to_file"] = get_env_bool("LOG_TO_FILE")
    if get_env("LOG_FORMATTER"):
        data.setdefault("logging", {})["formatter"] = get_env("LOG_FORMATTER")

    if get_env("CATALOG_PATH"):
        data.setdefault("paths", {})["catalog"] = get_env("CATALOG_PATH")
    if get_env("DB_PATH"):
        data.setdefault("paths", {})["database"] = get_env("DB_PATH")

    if get_env("STORAGE_BACKEND"):
        data.setdefault("storage", {})["backend"] = get_env("STORAGE_BACKEND")
    if get_env("PROGRESS_KEY"):
        data.setdefault("storage", {})["progress_key"] = get_env("PROGRESS_KEY")

    return AppConfig(**data)


def save_config(config: AppConfig, config_path: Optional[Path] = None):
    """Save configuration to config.json."""
    if config_path is None:
        config_path = CONFIG_PATH

    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(), f, indent=4)


# Global config instance
settings = load_config()
