"""
fork-sync CLI - keep a fork in sync with upstream and re-apply local patches.

Usage:
    forksync sync
    forksync patch Dockerfile
    forksync config
"""

import logging
from importlib.metadata import PackageNotFoundError, version as _package_version

import typer
from rich.console import Console

from forksync.cli.commands.config_cmd import config as config_command
from forksync.cli.commands.config_cmd import init as init_command
from forksync.cli.commands.patch import patch as patch_command
from forksync.cli.commands.sync import sync as sync_command

try:
    __version__ = _package_version("fork-sync")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"

console = Console()

app = typer.Typer(
    name="forksync",
    help="Keep a fork in sync with its upstream and re-apply local patches",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"forksync {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Fork synchronization and idempotent file patching."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


app.command("sync")(sync_command)
app.command("patch")(patch_command)
app.command("config")(config_command)
app.command("init")(init_command)


def main():
    app()


if __name__ == "__main__":
    main()
