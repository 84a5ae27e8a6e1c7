"""Normalize backend listing metadata into FsEntry values.

Every backend produces (path, RawMetadata) pairs in its own way. This module
is the only place that turns them into FsFile / FsDirectory, so that the
"unknown is None, never zero" rules hold for every protocol.
"""

import logging
import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from .fs_entry import EPOCH, FsDirectory, FsEntry, FsFile

logger = logging.getLogger(__name__)


@dataclass
class RawMetadata:
    """Metadata as reported by a remote session. Every field may be unknown."""

    size: int | None = None
    atime: int | None = None
    mtime: int | None = None
    mode: int | None = None
    uid: int | None = None
    gid: int | None = None
    is_dir: bool = False
    is_symlink: bool = False
    symlink_target: str | None = None


def unix_pex(mode: int | None) -> tuple[int, int, int] | None:
    """Split permission bits into an (owner, group, other) triple.

    Examples:
        >>> unix_pex(0o754)
        (7, 5, 4)
        >>> unix_pex(0) is None
        False
        >>> unix_pex(None) is None
        True
    """
    if mode is None:
        return None
    return ((mode >> 6) & 0x7, (mode >> 3) & 0x7, mode & 0x7)


def to_datetime(seconds: int | float | None) -> datetime:
    """Convert seconds since epoch to an aware UTC datetime (EPOCH if unknown)."""
    if seconds is None:
        return EPOCH
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return EPOCH


def entry_name(path: str) -> str:
    return posixpath.basename(path.rstrip("/")) if path else ""


def file_type(name: str) -> str | None:
    """Return the extension of ``name`` without the dot, if it has one."""
    _, ext = posixpath.splitext(name)
    return ext[1:] if ext else None


def _symlink_target(path: str, raw: RawMetadata, readlink: Callable[[str], str]) -> str | None:
    if not raw.is_symlink:
        return None
    if raw.symlink_target is not None:
        return raw.symlink_target
    try:
        return readlink(path)
    except OSError as e:
        logger.debug(f"Could not read symlink target of {path}: {e}")
        return None


def normalize_entry(path: str, raw: RawMetadata, readlink: Callable[[str], str]) -> FsEntry:
    """Build one FsEntry from a listing pair.

    Field-level failures degrade to "unknown" and never raise.
    """
    name = entry_name(path)
    pex = unix_pex(raw.mode)
    mtime = to_datetime(raw.mtime)
    atime = to_datetime(raw.atime)
    symlink = _symlink_target(path, raw, readlink)

    if raw.is_dir:
        return FsDirectory(
            name=name,
            abs_path=path,
            last_change_time=mtime,
            last_access_time=atime,
            creation_time=EPOCH,
            readonly=False,
            symlink=symlink,
            link=raw.is_symlink,
            user=raw.uid,
            group=raw.gid,
            unix_pex=pex,
        )
    return FsFile(
        name=name,
        abs_path=path,
        size=raw.size or 0,
        ftype=file_type(name),
        last_change_time=mtime,
        last_access_time=atime,
        creation_time=EPOCH,
        readonly=False,
        symlink=symlink,
        link=raw.is_symlink,
        user=raw.uid,
        group=raw.gid,
        unix_pex=pex,
    )


def normalize_listing(
    pairs: Iterable[tuple[str, RawMetadata]], readlink: Callable[[str], str]
) -> list[FsEntry]:
    """Normalize a whole directory listing, one entry per input pair."""
    return [normalize_entry(path, raw, readlink) for path, raw in pairs]
