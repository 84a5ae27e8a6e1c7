"""Tree operations built on directory listing plus per-entry dispatch."""

import logging
from collections.abc import Callable, Iterator
from typing import assert_never

from .exceptions import FileReadonlyError
from .fs_entry import FsDirectory, FsEntry, FsFile

logger = logging.getLogger(__name__)

ListDir = Callable[[str], list[FsEntry]]


def remove_entry(
    entry: FsEntry,
    list_dir: ListDir,
    unlink: Callable[[str], None],
    rmdir: Callable[[str], None],
) -> None:
    """Remove a file, or a directory with everything below it.

    Symlinks are unlinked, even when they point to a directory.
    Children are removed depth first, in listing order, before their parent.
    The first failure aborts the whole operation and is re-raised unchanged,
    so the tree may be left partially deleted. Siblings after the failing
    entry are not attempted.

    Raises:
        FileReadonlyError: A file or (emptied) directory could not be removed
        DirStatFailedError: A directory could not be listed
    """
    match entry:
        case FsDirectory() if not entry.is_symlink:
            for child in list_dir(entry.abs_path):
                remove_entry(child, list_dir, unlink, rmdir)
            try:
                rmdir(entry.abs_path)
            except OSError as e:
                raise FileReadonlyError(f"Could not remove {entry.abs_path}: {e}") from e
            logger.debug(f"Removed directory {entry.abs_path}")
        case FsFile() | FsDirectory():
            # Links are removed as links, even with an unknown target
            try:
                unlink(entry.abs_path)
            except OSError as e:
                raise FileReadonlyError(f"Could not remove {entry.abs_path}: {e}") from e
            logger.debug(f"Removed {entry.abs_path}")
        case _:
            assert_never(entry)


def walk(entry: FsEntry, list_dir: ListDir, depth: int = 0) -> Iterator[tuple[int, FsEntry]]:
    """Yield (depth, entry) for ``entry`` and everything below it, pre-order.

    Symlinked directories are yielded but not descended into.
    """
    yield depth, entry
    match entry:
        case FsFile():
            return
        case FsDirectory():
            if entry.is_symlink:
                return
            for child in list_dir(entry.abs_path):
                yield from walk(child, list_dir, depth + 1)
        case _:
            assert_never(entry)
