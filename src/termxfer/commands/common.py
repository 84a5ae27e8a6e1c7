"""Shared plumbing for termxfer commands: context, targets and connections."""

import functools
import getpass
import logging
import re
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click

from termxfer.config_manager import ConfigError, TermxferConfig
from termxfer.log_sanitizer import LogSanitizer
from termxfer.modules.bookmarks import BookmarksClient, SerializerError
from termxfer.modules.file_transfer import (
    FileTransferError,
    FileTransferProtocol,
    RemoteFileTransfer,
    make_file_transfer,
)

logger = logging.getLogger(__name__)

# [protocol://][user@]host[:port]; IPv6 hosts go in brackets
TARGET_PATTERN = re.compile(
    r"^(?:(?P<protocol>[A-Za-z]+)://)?"
    r"(?:(?P<user>[^@/]+)@)?"
    r"(?P<host>\[[0-9A-Fa-f:.]+\]|[^:@/\[\]]+)"
    r"(?::(?P<port>\d{1,5}))?/?$"
)


@dataclass
class CliContext:
    """Settings shared by every command, built once by the main group."""

    config: TermxferConfig
    bookmarks_file: Path
    key_file: Path

    def bookmarks(self) -> BookmarksClient:
        return BookmarksClient(self.bookmarks_file, self.key_file)

    @property
    def default_protocol(self) -> FileTransferProtocol:
        try:
            return FileTransferProtocol.from_str(self.config.default_protocol)
        except ValueError as e:
            raise ConfigError(f"Invalid default_protocol: {e}") from e


@dataclass
class Target:
    """Where to connect, before credentials are filled in."""

    address: str
    port: int
    protocol: FileTransferProtocol
    username: str
    password: str | None = None


def parse_target(target: str, default_protocol: FileTransferProtocol) -> Target:
    """Parse ``[protocol://][user@]host[:port]``.

    Raises:
        click.BadParameter: Malformed target
    """
    match = TARGET_PATTERN.match(target.strip())
    if not match:
        raise click.BadParameter(f"'{target}' is not a bookmark or [protocol://][user@]host[:port]")

    try:
        protocol = (
            FileTransferProtocol.from_str(match.group("protocol"))
            if match.group("protocol")
            else default_protocol
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    port = int(match.group("port")) if match.group("port") else protocol.default_port
    if not 0 < port < 65536:
        raise click.BadParameter(f"Invalid port: {port}")

    return Target(
        address=match.group("host").strip("[]"),
        port=port,
        protocol=protocol,
        username=match.group("user") or "",
    )


def resolve_target(cli_ctx: CliContext, client: BookmarksClient, target: str) -> Target:
    """Look ``target`` up as a bookmark name first, then parse it as an address."""
    params = client.get_bookmark(target)
    if params is not None:
        address, port, protocol, username, password = params
        logger.debug(f"Using bookmark '{target}'")
        return Target(address, port, protocol, username, password)

    resolved = parse_target(target, cli_ctx.default_protocol)
    if not resolved.username and resolved.protocol in (FileTransferProtocol.SFTP, FileTransferProtocol.SCP):
        resolved.username = getpass.getuser()
    return resolved


def prompt_password(target: Target) -> str | None:
    """Ask for a password; an empty answer means "try without one"."""
    if not target.username:
        # Anonymous FTP
        return None
    answer = click.prompt(
        f"Password for {target.username}@{target.address}",
        hide_input=True,
        default="",
        show_default=False,
    )
    return answer or None


@contextmanager
def connected(cli_ctx: CliContext, target: str) -> Iterator[RemoteFileTransfer]:
    """Connect to ``target``, record it in the recents and disconnect on exit."""
    client = cli_ctx.bookmarks()
    resolved = resolve_target(cli_ctx, client, target)
    if resolved.password is None:
        resolved.password = prompt_password(resolved)

    try:
        backend = make_file_transfer(
            resolved.protocol,
            chunk_size=cli_ctx.config.chunk_size,
            timeout=cli_ctx.config.connect_timeout,
        )
    except ValueError as e:
        raise ConfigError(f"Invalid chunk_size: {e}") from e
    backend.connect(resolved.address, resolved.port, resolved.username or None, resolved.password)

    _record_recent(client, resolved)
    try:
        yield backend
    finally:
        try:
            backend.disconnect()
        except FileTransferError as e:
            logger.debug(f"Disconnect failed: {e}")


def _record_recent(client: BookmarksClient, target: Target) -> None:
    client.add_recent(target.address, target.port, target.protocol, target.username)
    try:
        client.write_bookmarks()
    except SerializerError as e:
        logger.warning(f"Could not save recent connection: {e}")


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Print domain errors as "Error: ..." on stderr and exit 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (FileTransferError, SerializerError, ConfigError, OSError) as e:
            click.echo(f"Error: {LogSanitizer.create_safe_error_message(e)}", err=True)
            sys.exit(1)

    return wrapper
