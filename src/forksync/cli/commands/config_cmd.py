"""``forksync config`` and ``forksync init`` commands."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from forksync.config import ForkSyncConfig, config_path, load_config, locate_repo_root, save_config
from forksync.errors import ConfigError

console = Console()


def config(
    json_output: bool = typer.Option(False, "--json", help="Emit the configuration as JSON"),
) -> None:
    """Show the effective configuration (file values merged over defaults)."""
    repo_root = locate_repo_root() or Path.cwd()
    try:
        effective = load_config(repo_root)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(effective.to_dict(), indent=2))
        return

    path = config_path(repo_root)
    source = str(path) if path.exists() else "built-in defaults"

    table = Table(title=f"fork-sync configuration ({source})", show_lines=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    rows = [
        ("upstream", f"{effective.upstream.ref} ({effective.upstream.url or 'existing remote'})"),
        ("origin", effective.origin.ref),
        ("git identity", f"{effective.identity.user_name} <{effective.identity.user_email}>"),
        ("patch file", effective.target_file),
        ("marker", effective.rule.marker),
        ("anchor", effective.rule.anchor_pattern),
        ("insert", "\n".join(effective.rule.insert_lines)),
        ("commit message", effective.commit_message),
    ]
    for setting, value in rows:
        # Text() keeps values like "github-actions[bot]" from being read as markup
        table.add_row(setting, Text(value))

    console.print(table)


def init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing configuration"),
) -> None:
    """Write the default configuration to .forksync/config.yaml."""
    repo_root = locate_repo_root() or Path.cwd()
    path = config_path(repo_root)
    if path.exists() and not force:
        console.print(f"[yellow]Configuration already exists:[/yellow] {path} (use --force to overwrite)")
        raise typer.Exit(1)

    written = save_config(repo_root, ForkSyncConfig())
    console.print(f"[green]✓[/green] Wrote {written}")
