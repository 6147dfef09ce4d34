"""
Configuration management for the chat archive query layer.

This module handles the archive location, store timeouts, discovery options and
logging level.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class ArchiveConfig:
    """Archive location and store access settings."""

    data_dir: str = "~/chatlog/db_storage"
    timeout_seconds: int = 30
    recursive: bool = True


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Main configuration class."""

    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        return cls(
            archive=ArchiveConfig(**data.get("archive", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load config from JSON file."""
        if path.exists():
            with open(path) as f:
                data = json.load(f)
                return cls.from_dict(data)
        return cls()

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        config = cls()

        if env_val := os.getenv("CHATLOG_DATA_DIR"):
            config.archive.data_dir = env_val

        if env_val := os.getenv("CHATLOG_TIMEOUT_SECONDS"):
            config.archive.timeout_seconds = int(env_val)

        if env_val := os.getenv("CHATLOG_RECURSIVE"):
            config.archive.recursive = env_val.lower() == "true"

        if env_val := os.getenv("CHATLOG_LOG_LEVEL"):
            config.logging.level = env_val.upper()

        return config

    def get_data_dir(self) -> Path:
        """Get expanded archive directory."""
        return Path(self.archive.data_dir).expanduser()


def load_config() -> Config:
    """Load configuration from file or environment."""
    config_paths = [
        Path("config.json"),
        Path("~/.chatlog-archive/config.json").expanduser(),
        Path("/etc/chatlog-archive/config.json"),
    ]

    for path in config_paths:
        if path.exists():
            return Config.from_file(path)

    return Config.from_env()


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
