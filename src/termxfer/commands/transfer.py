"""Remote browsing and file transfer commands for termxfer CLI.

Every command takes a TARGET, which is either a bookmark name or
``[protocol://][user@]host[:port]``.
"""

import logging
import os
import posixpath
import tempfile
from pathlib import Path
from typing import assert_never

import click
from rich.console import Console
from rich.table import Table

from termxfer.modules.file_transfer import (
    FsDirectory,
    FsEntry,
    FsFile,
    NoSuchFileOrDirectoryError,
    RemoteFileTransfer,
)
from termxfer.modules.progress import TransferProgressDisplay, format_size

from .common import CliContext, connected, handle_errors

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M"


def _entry_row(entry: FsEntry, depth: int = 0) -> tuple[str, str, str, str]:
    match entry:
        case FsFile():
            kind, size = "-", format_size(entry.size)
        case FsDirectory():
            kind, size = "d", ""
        case _:
            assert_never(entry)
    if entry.is_symlink:
        kind = "l"
    name = "  " * depth + entry.name + ("/" if entry.is_dir else "")
    if entry.symlink is not None:
        name += f" -> {entry.symlink}"
    return kind + entry.unix_pex_str(), size, entry.last_change_time.strftime(TIME_FORMAT), name


def _find_entry(backend: RemoteFileTransfer, path: str) -> FsEntry:
    """Look ``path`` up in its parent's listing."""
    name = posixpath.basename(path.rstrip("/"))
    parent = posixpath.dirname(path.rstrip("/")) or "."
    for entry in backend.list_dir(parent):
        if entry.name == name:
            return entry
    raise NoSuchFileOrDirectoryError(f"No such file or directory: {path}")


@click.command(name="ls")
@click.argument("target")
@click.argument("path", default=".")
@click.option("--recursive", "-r", is_flag=True, help="Descend into subdirectories")
@click.pass_obj
@handle_errors
def ls(cli_ctx: CliContext, target: str, path: str, recursive: bool):
    """List remote directory PATH (default: login directory).

    \b
    Examples:
        $ termxfer ls work
        $ termxfer ls sftp://alice@example.com:2222 /var/log -r
    """
    with connected(cli_ctx, target) as backend:
        directory = backend.change_dir(path)
        rows = (
            [_entry_row(entry, depth) for depth, entry in backend.walk(".")]
            if recursive
            else [_entry_row(entry) for entry in backend.list_dir(".")]
        )

    table = Table(title=directory)
    table.add_column("Permissions", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Modified", style="yellow")
    table.add_column("Name", style="cyan")
    for row in rows:
        table.add_row(*row)
    Console().print(table)


@click.command(name="get")
@click.argument("target")
@click.argument("remote")
@click.argument("local", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
@handle_errors
def get(cli_ctx: CliContext, target: str, remote: str, local: Path | None):
    """Download REMOTE to LOCAL (default: same name in the current directory).

    The download goes to a hidden sibling of LOCAL, which replaces LOCAL
    only once the transfer has succeeded.
    """
    local = local or Path(posixpath.basename(remote.rstrip("/")))
    with connected(cli_ctx, target) as backend:
        fd, name = tempfile.mkstemp(dir=local.parent, prefix=f".{local.name}-", suffix=".part")
        temp_path: Path | None = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle, TransferProgressDisplay(remote) as display:
                backend.receive(remote, handle, display.callback)
            temp_path.replace(local)
            temp_path = None
        finally:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
    click.echo(display.summary())


@click.command(name="put")
@click.argument("target")
@click.argument("local", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("remote", required=False)
@click.pass_obj
@handle_errors
def put(cli_ctx: CliContext, target: str, local: Path, remote: str | None):
    """Upload LOCAL to REMOTE (default: same name in the login directory)."""
    remote = remote or local.name
    with connected(cli_ctx, target) as backend:
        with open(local, "rb") as handle, TransferProgressDisplay(local.name) as display:
            backend.send(handle, remote, display.callback)
    click.echo(display.summary())


@click.command(name="rm")
@click.argument("target")
@click.argument("path")
@click.option("--yes", "-y", is_flag=True, help="Do not ask before removing a directory")
@click.pass_obj
@handle_errors
def rm(cli_ctx: CliContext, target: str, path: str, yes: bool):
    """Remove remote PATH; directories are removed with their contents.

    Removal stops at the first entry that cannot be deleted, which may leave
    a directory partially emptied.
    """
    with connected(cli_ctx, target) as backend:
        entry = _find_entry(backend, path)
        if entry.is_dir and not yes:
            click.confirm(f"Remove directory {entry.abs_path} and everything in it?", abort=True)
        backend.remove(entry)
    click.echo(f"Removed {entry.abs_path}")


@click.command(name="mkdir")
@click.argument("target")
@click.argument("path")
@click.pass_obj
@handle_errors
def mkdir(cli_ctx: CliContext, target: str, path: str):
    """Create remote directory PATH."""
    with connected(cli_ctx, target) as backend:
        created = backend.mkdir(path)
    click.echo(f"Created {created}")
