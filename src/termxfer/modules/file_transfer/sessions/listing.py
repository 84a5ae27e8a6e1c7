"""Parsers for textual directory listings (``ls -l`` style and MLSD facts).

SCP has no listing primitive and many FTP servers only answer LIST, so both
fall back to parsing the classic long format:

    drwxr-xr-x  2 1000 1000 4096 Nov  5 16:32 docs
    -rw-r--r--  1 1000 1000  812 Nov  5  2019 notes.txt
    lrwxrwxrwx  1 0    0       7 Jan  1 10:00 bin -> usr/bin
"""

import calendar
import logging
import posixpath
import re
from datetime import UTC, datetime, timedelta

from ..metadata import RawMetadata

logger = logging.getLogger(__name__)

LS_LINE_PATTERN = re.compile(
    r"^(?P<type>[-dlcbps])(?P<pex>[-rwxsStT]{9})[.+@]?\s+"
    r"(?P<links>\d+)\s+(?P<user>\S+)\s+(?P<group>\S+)\s+(?P<size>\d+)\s+"
    r"(?P<date>[A-Za-z]{3}\s+\d{1,2}\s+(?:\d{1,2}:\d{2}|\d{4}))\s+(?P<name>.+)$"
)

_PEX_BITS = (
    (0o400, "r"),
    (0o200, "w"),
    (0o100, "xst"),
    (0o040, "r"),
    (0o020, "w"),
    (0o010, "xst"),
    (0o004, "r"),
    (0o002, "w"),
    (0o001, "xst"),
)


def pex_to_mode(pex: str) -> int:
    """Convert ``rwxr-x---`` to ``0o750``. Upper-case S/T mean the x bit is off."""
    mode = 0
    for char, (bit, allowed) in zip(pex, _PEX_BITS):
        if char in allowed:
            mode |= bit
    return mode


def _optional_int(value: str) -> int | None:
    return int(value) if value.isdigit() else None


def parse_ls_time(text: str, now: datetime | None = None) -> int | None:
    """Parse the date column of ``ls -l`` into seconds since epoch (UTC).

    Recent entries omit the year; they are placed in the current year, or
    the previous one if that would put them in the future.
    """
    now = now or datetime.now(tz=UTC)
    text = " ".join(text.split())
    try:
        if ":" in text:
            parsed = datetime.strptime(f"{text} {now.year}", "%b %d %H:%M %Y")
            if parsed.replace(tzinfo=UTC) > now + timedelta(days=1):
                parsed = parsed.replace(year=now.year - 1)
        else:
            parsed = datetime.strptime(text, "%b %d %Y")
    except ValueError:
        return None
    return calendar.timegm(parsed.timetuple())


def parse_ls_line(line: str) -> tuple[str, RawMetadata] | None:
    """Parse one long-format line into (name, metadata); None if it is not an entry."""
    match = LS_LINE_PATTERN.match(line.rstrip("\r\n"))
    if match is None:
        return None

    kind = match.group("type")
    name = match.group("name")
    symlink_target = None
    if kind == "l" and " -> " in name:
        name, symlink_target = name.split(" -> ", 1)

    mtime = parse_ls_time(match.group("date"))
    return name, RawMetadata(
        size=int(match.group("size")),
        atime=mtime,
        mtime=mtime,
        mode=pex_to_mode(match.group("pex")),
        uid=_optional_int(match.group("user")),
        gid=_optional_int(match.group("group")),
        is_dir=kind == "d",
        is_symlink=kind == "l",
        symlink_target=symlink_target,
    )


def parse_ls_output(directory: str, output: str) -> list[tuple[str, RawMetadata]]:
    """Parse a full listing of ``directory`` into (absolute path, metadata) pairs."""
    entries = []
    for line in output.splitlines():
        parsed = parse_ls_line(line)
        if parsed is None:
            if line.strip() and not line.startswith("total "):
                logger.debug(f"Skipping unparsable listing line: {line!r}")
            continue
        name, raw = parsed
        if name in (".", ".."):
            continue
        entries.append((posixpath.join(directory, name), raw))
    return entries


def parse_mlsd_time(value: str | None) -> int | None:
    """Parse an MLSD ``modify`` fact (YYYYMMDDHHMMSS[.sss], UTC)."""
    if not value:
        return None
    try:
        parsed = datetime.strptime(value.split(".", 1)[0], "%Y%m%d%H%M%S")
    except ValueError:
        return None
    return calendar.timegm(parsed.timetuple())


def parse_mlsd_facts(facts: dict[str, str]) -> RawMetadata:
    """Build RawMetadata from the facts of one MLSD entry."""
    kind = facts.get("type", "").lower()
    mode = facts.get("unix.mode")
    size = facts.get("size") or facts.get("sizd")
    mtime = parse_mlsd_time(facts.get("modify"))
    return RawMetadata(
        size=int(size) if size and size.isdigit() else None,
        atime=mtime,
        mtime=mtime,
        mode=int(mode, 8) & 0o777 if mode else None,
        uid=_optional_int(facts.get("unix.uid", "")),
        gid=_optional_int(facts.get("unix.gid", "")),
        is_dir=kind in ("dir", "cdir", "pdir"),
        is_symlink="symlink" in kind or "slink" in kind,
    )
