"""Command-line interface for termxfer.

This module provides the main CLI entry point: a click group that loads the
configuration, sets up logging and hands a CliContext to every command.
"""

import logging

import click

from termxfer import __version__
from termxfer.commands import bookmarks_group, get, ls, mkdir, put, recents, rm
from termxfer.commands.common import CliContext
from termxfer.config_manager import ConfigError, ConfigManager
from termxfer.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)


@click.group(context_settings={"help_option_names": ["--help", "-h"]})
@click.option("--config", help="Config file path", type=click.Path(dir_okay=False))
@click.option("--bookmarks-file", help="Bookmarks file (overrides config)", type=click.Path(dir_okay=False))
@click.option("--key-file", help="Bookmarks key file (overrides config)", type=click.Path(dir_okay=False))
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    config: str | None,
    bookmarks_file: str | None,
    key_file: str | None,
    verbose: bool,
) -> None:
    """termxfer - browse and transfer files over SFTP, SCP and FTP(S).

    \b
    TARGETS:
        A bookmark name, or [protocol://][user@]host[:port]
        Protocols: sftp (default), scp, ftp, ftps

    \b
    EXAMPLES:
        $ termxfer ls alice@example.com
        $ termxfer put ftp://bob@files.example.org report.pdf incoming/report.pdf
        $ termxfer bookmarks add work example.com --user alice --save-password
        $ termxfer get work logs/app.log

    \b
    CONFIGURATION:
        Config file: ~/.termxfer/config.toml
        Bookmarks:   ~/.termxfer/bookmarks.toml (passwords encrypted)
    """
    try:
        termxfer_config = ConfigManager.load_config(config)
    except ConfigError as e:
        raise click.ClickException(LogSanitizer.create_safe_error_message(e)) from e

    level = logging.DEBUG if verbose else getattr(logging, termxfer_config.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(message)s")

    if bookmarks_file:
        termxfer_config.bookmarks_file = bookmarks_file
    if key_file:
        termxfer_config.key_file = key_file

    ctx.obj = CliContext(
        config=termxfer_config,
        bookmarks_file=termxfer_config.bookmarks_path,
        key_file=termxfer_config.key_path,
    )
    logger.debug(f"Bookmarks: {ctx.obj.bookmarks_file}, key: {ctx.obj.key_file}")


main.add_command(bookmarks_group)
main.add_command(recents)
main.add_command(ls)
main.add_command(get)
main.add_command(put)
main.add_command(rm)
main.add_command(mkdir)


if __name__ == "__main__":
    main()
