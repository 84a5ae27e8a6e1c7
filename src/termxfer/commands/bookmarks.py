"""Bookmark and recent-connection commands for termxfer CLI."""

import logging

import click
from rich.console import Console
from rich.table import Table

from termxfer.modules.file_transfer import FileTransferProtocol

from .common import CliContext, handle_errors

logger = logging.getLogger(__name__)

PROTOCOL_CHOICES = [p.value.lower() for p in FileTransferProtocol]


@click.group(name="bookmarks")
def bookmarks_group():
    """Manage saved connection profiles.

    \b
    COMMANDS:
        list       Show saved bookmarks
        add        Save a bookmark (optionally with its password)
        remove     Delete a bookmark

    \b
    EXAMPLES:
        $ termxfer bookmarks add work example.com --user alice --save-password
        $ termxfer ls work /var/log
    """
    pass


@bookmarks_group.command(name="list")
@click.pass_obj
@handle_errors
def list_bookmarks(cli_ctx: CliContext):
    """Show saved bookmarks."""
    client = cli_ctx.bookmarks()
    entries = list(client.iter_bookmarks())
    if not entries:
        click.echo("No bookmarks saved.")
        return

    table = Table(title="Bookmarks")
    table.add_column("Name", style="cyan")
    table.add_column("Protocol", style="magenta")
    table.add_column("Address", style="white")
    table.add_column("Port", justify="right")
    table.add_column("User", style="yellow")
    table.add_column("Password", style="green")
    for name, bookmark in entries:
        table.add_row(
            name,
            bookmark.protocol.value,
            bookmark.address,
            str(bookmark.port),
            bookmark.username,
            "saved" if bookmark.password else "",
        )
    Console().print(table)


@bookmarks_group.command(name="add")
@click.argument("name")
@click.argument("address")
@click.option("--port", type=int, help="Port (default: protocol default)")
@click.option(
    "--protocol",
    type=click.Choice(PROTOCOL_CHOICES, case_sensitive=False),
    help="Protocol (default: from config)",
)
@click.option("--user", "username", default="", help="Username")
@click.option("--save-password", is_flag=True, help="Prompt for a password and store it encrypted")
@click.pass_obj
@handle_errors
def add_bookmark(
    cli_ctx: CliContext,
    name: str,
    address: str,
    port: int | None,
    protocol: str | None,
    username: str,
    save_password: bool,
):
    """Save bookmark NAME pointing at ADDRESS."""
    proto = FileTransferProtocol.from_str(protocol) if protocol else cli_ctx.default_protocol
    password = None
    if save_password:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    client = cli_ctx.bookmarks()
    client.add_bookmark(name, address, port or proto.default_port, proto, username, password)
    client.write_bookmarks()
    click.echo(f"Saved bookmark '{name}'")


@bookmarks_group.command(name="remove")
@click.argument("name")
@click.pass_obj
@handle_errors
def remove_bookmark(cli_ctx: CliContext, name: str):
    """Delete bookmark NAME."""
    client = cli_ctx.bookmarks()
    if not client.del_bookmark(name):
        raise click.ClickException(f"No bookmark named '{name}'")
    client.write_bookmarks()
    click.echo(f"Removed bookmark '{name}'")


@click.command(name="recents")
@click.pass_obj
@handle_errors
def recents(cli_ctx: CliContext):
    """Show recent connections, newest first."""
    client = cli_ctx.bookmarks()
    entries = list(client.iter_recents())
    if not entries:
        click.echo("No recent connections.")
        return

    table = Table(title="Recent Connections")
    table.add_column("When", style="dim")
    table.add_column("Target", style="cyan")
    for key, bookmark in entries:
        table.add_row(key, bookmark.target)
    Console().print(table)
