"""
sync-rsync application configuration.

Settings of the tool itself (logging, output location, debounce window),
validated with Pydantic. Per-site sync settings live in
:mod:`syncrsync.core.settings`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_HOME = Path.home() / ".sync-rsync"


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    file_enabled: bool = True
    console_enabled: bool = True
    json_format: bool = False
    log_directory: Path = Field(default_factory=lambda: DEFAULT_HOME / "logs")

    @field_validator("log_directory", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class SyncRsyncConfig(BaseModel):
    """Main sync-rsync configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output_directory: Path = Field(default_factory=lambda: DEFAULT_HOME / "output")
    settings_file_name: str = "sync-rsync.json"
    debounce_seconds: float = Field(default=0.1, gt=0, le=10)

    @field_validator("output_directory", mode="before")
    @classmethod
    def expand_output_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()

    @classmethod
    def load(cls, config_path: Path | None = None) -> SyncRsyncConfig:
        """Load configuration from file or create default."""
        if config_path is None:
            config_path = DEFAULT_HOME / "config.json"

        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = DEFAULT_HOME / "config.json"

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    def ensure_directories(self) -> None:
        """Create all required directories."""
        self.logging.log_directory.mkdir(parents=True, exist_ok=True)
        self.output_directory.mkdir(parents=True, exist_ok=True)

    def get_output_file(self) -> Path:
        """Path of the output channel log."""
        return self.output_directory / "output.log"

    def get_settings_file(self, workspace_root: Path) -> Path:
        """Default raw settings file inside a workspace."""
        return workspace_root / self.settings_file_name


def load_config(config_path: Path | None = None) -> SyncRsyncConfig:
    """Load or create configuration."""
    config = SyncRsyncConfig.load(config_path)
    config.ensure_directories()
    return config
