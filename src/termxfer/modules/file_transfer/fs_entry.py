"""Uniform filesystem entry model shared by every backend."""

from dataclasses import dataclass
from datetime import UTC, datetime

EPOCH = datetime.fromtimestamp(0, tz=UTC)

_PEX_CHARS = "rwx"


def _pex_to_str(unix_pex: tuple[int, int, int] | None) -> str:
    if unix_pex is None:
        return "?" * 9
    out = []
    for triple in unix_pex:
        for bit, char in zip((4, 2, 1), _PEX_CHARS):
            out.append(char if triple & bit else "-")
    return "".join(out)


@dataclass(frozen=True)
class FsFile:
    """A remote file (or a symlink that does not resolve to a directory)."""

    name: str
    abs_path: str
    size: int
    ftype: str | None = None
    last_change_time: datetime = EPOCH
    last_access_time: datetime = EPOCH
    creation_time: datetime = EPOCH
    readonly: bool = False
    symlink: str | None = None
    link: bool = False
    user: int | None = None
    group: int | None = None
    unix_pex: tuple[int, int, int] | None = None

    @property
    def is_dir(self) -> bool:
        return False

    @property
    def is_symlink(self) -> bool:
        return self.link or self.symlink is not None

    def unix_pex_str(self) -> str:
        return _pex_to_str(self.unix_pex)


@dataclass(frozen=True)
class FsDirectory:
    """A remote directory.

    ``link`` is set for any symlink, including one whose target could not
    be read (``symlink`` is then None).
    """

    name: str
    abs_path: str
    last_change_time: datetime = EPOCH
    last_access_time: datetime = EPOCH
    creation_time: datetime = EPOCH
    readonly: bool = False
    symlink: str | None = None
    link: bool = False
    user: int | None = None
    group: int | None = None
    unix_pex: tuple[int, int, int] | None = None

    @property
    def is_dir(self) -> bool:
        return True

    @property
    def is_symlink(self) -> bool:
        return self.link or self.symlink is not None

    def unix_pex_str(self) -> str:
        return _pex_to_str(self.unix_pex)


# Closed union: consumers match on both variants and call assert_never otherwise
FsEntry = FsFile | FsDirectory
