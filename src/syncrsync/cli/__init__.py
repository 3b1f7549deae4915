"""
sync-rsync CLI module.
"""

from syncrsync.cli.main import main

__all__ = ["main"]
