"""Command groups for termxfer CLI."""

from termxfer.commands.bookmarks import bookmarks_group, recents
from termxfer.commands.transfer import get, ls, mkdir, put, rm

__all__ = ["bookmarks_group", "get", "ls", "mkdir", "put", "recents", "rm"]
