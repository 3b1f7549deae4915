"""
Raw sync settings.

Mirrors the settings a user writes (camelCase keys, optionally prefixed
with ``sync-rsync.`` as in an editor settings file). Every per-site field
is optional; which fields were actually written is read back from
``model_fields_set`` so that an explicitly empty list still overrides.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from syncrsync.core.errors import ConfigError
from syncrsync.core.logging import get_logger

logger = get_logger(__name__)

SETTINGS_PREFIX = "sync-rsync."

# Site fields that may legitimately be reset to None by an override.
NULLABLE_SITE_FIELDS = frozenset(
    {"name", "local_path", "remote_path", "chmod", "shell", "executable_shell"}
)


class RawSite(BaseModel):
    """A partially-specified site, as written in the settings."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str | None = None
    local_path: str | None = Field(
        default=None, validation_alias=AliasChoices("localPath", "local", "local_path")
    )
    remote_path: str | None = Field(
        default=None, validation_alias=AliasChoices("remotePath", "remote", "remote_path")
    )
    up_only: bool | None = Field(
        default=None, validation_alias=AliasChoices("upOnly", "up_only")
    )
    down_only: bool | None = Field(
        default=None, validation_alias=AliasChoices("downOnly", "down_only")
    )
    delete_files: bool | None = Field(
        default=None, validation_alias=AliasChoices("deleteFiles", "delete", "delete_files")
    )
    flags: str | None = None
    exclude: list[str] | None = None
    include: list[str] | None = None
    chmod: str | None = None
    shell: str | None = None
    executable_shell: str | None = Field(
        default=None, validation_alias=AliasChoices("executableShell", "executable_shell")
    )
    executable: str | None = None
    after_sync: list[str] | None = Field(
        default=None, validation_alias=AliasChoices("afterSync", "after_sync")
    )
    options: list[list[str]] | None = None
    args: list[str] | None = None

    def overrides(self) -> dict[str, Any]:
        """Fields explicitly present in the raw entry, converted to Site types."""
        result: dict[str, Any] = {}
        for name in self.model_fields_set:
            if name not in RawSite.model_fields:
                continue
            value = getattr(self, name)
            if value is None and name not in NULLABLE_SITE_FIELDS:
                continue
            if name == "options":
                value = tuple(tuple(group) for group in value)
            elif isinstance(value, list):
                value = tuple(value)
            result[name] = value
        return result


class RawSettings(RawSite):
    """Top-level settings: the default site plus process-wide switches."""

    on_save: bool = Field(default=False, validation_alias=AliasChoices("onSave", "on_save"))
    on_save_individual: bool = Field(
        default=False, validation_alias=AliasChoices("onSaveIndividual", "on_save_individual")
    )
    on_load_individual: bool = Field(
        default=False, validation_alias=AliasChoices("onLoadIndividual", "on_load_individual")
    )
    show_progress: bool = Field(
        default=True, validation_alias=AliasChoices("showProgress", "show_progress")
    )
    notification: bool = False
    auto_show_output: bool = Field(
        default=False, validation_alias=AliasChoices("autoShowOutput", "auto_show_output")
    )
    auto_show_output_on_error: bool = Field(
        default=True,
        validation_alias=AliasChoices("autoShowOutputOnError", "auto_show_output_on_error"),
    )
    auto_hide_output: bool = Field(
        default=False, validation_alias=AliasChoices("autoHideOutput", "auto_hide_output")
    )
    cygpath: str | None = None
    watch_globs: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("watchGlobs", "watch_globs")
    )
    use_wsl: bool = Field(default=False, validation_alias=AliasChoices("useWSL", "use_wsl"))
    sites: list[RawSite] = Field(default_factory=list)


def strip_prefix(data: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only ``sync-rsync.*`` keys when the mapping uses the prefix."""
    if not any(key.startswith(SETTINGS_PREFIX) for key in data):
        return dict(data)
    return {
        key[len(SETTINGS_PREFIX):]: value
        for key, value in data.items()
        if key.startswith(SETTINGS_PREFIX)
    }


def parse_raw_settings(data: Mapping[str, Any]) -> RawSettings:
    """Validate a raw settings mapping."""
    try:
        return RawSettings.model_validate(strip_prefix(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def load_raw_settings(settings_path: Path) -> RawSettings:
    """Load raw settings from a JSON file. A missing file means no settings."""
    if not settings_path.exists():
        logger.debug("No settings file", path=str(settings_path))
        return RawSettings()

    try:
        with open(settings_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Unable to read settings {settings_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings in {settings_path} must be a JSON object")

    return parse_raw_settings(data)
