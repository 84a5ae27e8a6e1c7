"""
Progress Display Module

Show transfer progress to the user while bytes move.

The transfer engine reports (transferred, total) after every chunk; this
module turns those callbacks into a rich progress bar. A total of 0 means
the size is unknown, in which case the bar pulses instead of filling.
"""

import logging
import time

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)

logger = logging.getLogger(__name__)

_SIZE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]


def format_size(size: int) -> str:
    """Format a byte count for humans.

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(1536)
        '1.5 KiB'
    """
    value = float(size)
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format (e.g. "2m 30s")."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


class TransferProgressDisplay:
    """
    Progress bar for a single transfer.

    Use as a context manager and pass ``callback`` to send/receive.

    Example:
        >>> with TransferProgressDisplay("notes.txt") as display:
        ...     backend.send(handle, "notes.txt", display.callback)
        >>> display.summary()
        'notes.txt: 1.5 KiB in 0.2s'
    """

    def __init__(self, description: str, console: Console | None = None):
        self.description = description
        self.console = console or Console(stderr=True)
        self.transferred = 0
        self.total = 0
        self.start_time: float | None = None
        self.end_time: float | None = None
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=self.console,
            transient=True,
        )
        self._task: TaskID | None = None

    def __enter__(self) -> "TransferProgressDisplay":
        self.start_time = time.time()
        self._progress.start()
        self._task = self._progress.add_task(self.description, total=None)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end_time = time.time()
        self._progress.stop()

    def callback(self, transferred: int, total: int) -> None:
        """Progress callback: (bytes so far, total bytes or 0 if unknown)."""
        self.transferred = transferred
        self.total = total
        if self._task is None:
            return
        self._progress.update(self._task, completed=transferred, total=total or None)

    def summary(self) -> str:
        elapsed = (self.end_time or time.time()) - (self.start_time or time.time())
        return f"{self.description}: {format_size(self.transferred)} in {format_duration(elapsed)}"
