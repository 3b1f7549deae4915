"""
sync-rsync sync module.

Orchestrates sync runs across sites, coalesces triggers and watches the
workspace for changes.
"""

from syncrsync.sync.controller import SyncController
from syncrsync.sync.debounce import Debouncer
from syncrsync.sync.orchestrator import SyncOrchestrator

__all__ = ["SyncController", "Debouncer", "SyncOrchestrator"]
