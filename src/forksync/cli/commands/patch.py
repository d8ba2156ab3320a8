"""``forksync patch`` - apply the insertion rule to a single file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from forksync.config import load_config, locate_repo_root
from forksync.document import patch_file
from forksync.errors import ForkSyncError
from forksync.patcher import ApplyResult
from forksync.rules import rule_from_mapping

console = Console()


def patch(
    file: Optional[Path] = typer.Argument(
        None,
        help="File to patch (defaults to patch.file from .forksync/config.yaml)",
    ),
    marker: Optional[str] = typer.Option(
        None, "--marker", help="Literal text whose presence means the patch is already applied"
    ),
    anchor: Optional[str] = typer.Option(
        None, "--anchor", help="Regular expression for the line to insert after"
    ),
    insert: Optional[list[str]] = typer.Option(
        None, "--insert", help="Line to insert (repeat for several lines, in order)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without writing"),
    json_output: bool = typer.Option(False, "--json", help="Emit a JSON result"),
) -> None:
    """Insert the configured lines after the anchor line, unless already present.

    Exits 0 when the file was patched or already up to date, and 1 when the
    anchor line cannot be found.

    Examples:
        forksync patch
        forksync patch Dockerfile --dry-run
        forksync patch build/Dockerfile --marker "ARG X" --anchor "^FROM .* AS build" --insert "ARG X"
    """
    repo_root = locate_repo_root() or Path.cwd()

    try:
        config = load_config(repo_root)
        overrides: dict[str, object] = {}
        if marker is not None:
            overrides["marker"] = marker
        if anchor is not None:
            overrides["anchor"] = anchor
        if insert:
            overrides["insert"] = list(insert)
        rule = rule_from_mapping(overrides, default=config.rule)
        target = file if file is not None else repo_root / config.target_file
        result = patch_file(target, rule, dry_run=dry_run)
    except ForkSyncError as exc:
        if json_output:
            typer.echo(json.dumps({"error": str(exc), "error_type": type(exc).__name__}, indent=2))
        else:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    if json_output:
        payload = result.to_dict()
        payload["dry_run"] = dry_run
        typer.echo(json.dumps(payload, indent=2))
        return

    if result.result is ApplyResult.UNCHANGED:
        console.print(f"[green]✓[/green] Nothing to do: {result.path} already contains [cyan]{escape(rule.marker)}[/cyan]")
    elif dry_run:
        console.print(
            f"[yellow]Dry run:[/yellow] would insert {len(rule.insert_lines)} line(s) "
            f"after line {result.anchor_index + 1} of {result.path}"
        )
    else:
        console.print(
            f"[green]✓[/green] Inserted {len(rule.insert_lines)} line(s) "
            f"after line {result.anchor_index + 1} of {result.path}"
        )
