"""
sync-rsync core.

Configuration, settings resolution, session state and logging.
"""

from syncrsync.core.config import SyncRsyncConfig, LoggingConfig, load_config
from syncrsync.core.errors import (
    ConfigError,
    PathTranslationError,
    PostSyncCommandError,
    ProcessSpawnError,
    SiteSkipped,
    SyncExitError,
    SyncRsyncError,
)
from syncrsync.core.logging import get_logger, setup_logging
from syncrsync.core.models import Config, Direction, Site, WorkspaceContext

__all__ = [
    "SyncRsyncConfig",
    "LoggingConfig",
    "load_config",
    "ConfigError",
    "PathTranslationError",
    "PostSyncCommandError",
    "ProcessSpawnError",
    "SiteSkipped",
    "SyncExitError",
    "SyncRsyncError",
    "get_logger",
    "setup_logging",
    "Config",
    "Direction",
    "Site",
    "WorkspaceContext",
]
