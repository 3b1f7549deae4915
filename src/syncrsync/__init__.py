"""
sync-rsync - Mirror local directory trees to remote sites with rsync.

Resolves per-site settings into path-correct site definitions and runs
the sync executable across sites, manually, on save, or on change.
"""

__version__ = "1.0.0"
__author__ = "sync-rsync contributors"

from syncrsync.core.config import SyncRsyncConfig
from syncrsync.core.models import Config, Direction, Site, WorkspaceContext

__all__ = ["Config", "Direction", "Site", "SyncRsyncConfig", "WorkspaceContext", "__version__"]
