"""``forksync sync`` - merge upstream into the fork and re-apply the patch."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from forksync.cli.ui import StepTracker
from forksync.config import load_config, locate_repo_root
from forksync.errors import AnchorNotFound, ForkSyncError, MergeConflictError
from forksync.upstream import SYNC_STEPS, sync_fork

console = Console()


def sync(
    upstream_url: Optional[str] = typer.Option(
        None, "--upstream-url", help="Upstream repository URL (overrides upstream.url)"
    ),
    branch: Optional[str] = typer.Option(
        None, "--branch", "-b", help="Branch to sync on both upstream and origin"
    ),
    push: bool = typer.Option(True, "--push/--no-push", help="Push the result to origin"),
    repo: Optional[Path] = typer.Option(
        None, "--repo", help="Fork working tree (defaults to the enclosing repository)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit a JSON report"),
) -> None:
    """Merge the upstream branch, patch the target file, commit and push.

    Safe to run repeatedly: the patch is only applied once and nothing is
    committed when the target file is already up to date.

    Examples:
        forksync sync
        forksync sync --no-push
        forksync sync --upstream-url https://github.com/example/project.git --branch develop
    """
    repo_root = repo or locate_repo_root() or Path.cwd()
    tracker = StepTracker("Fork sync", SYNC_STEPS)

    try:
        config = load_config(repo_root)
        if upstream_url:
            config.upstream = replace(config.upstream, url=upstream_url)
        if branch:
            config.upstream = replace(config.upstream, branch=branch)
            config.origin = replace(config.origin, branch=branch)
        report = sync_fork(repo_root, config, push=push, tracker=tracker)
    except ForkSyncError as exc:
        if json_output:
            typer.echo(json.dumps({"error": str(exc), "error_type": type(exc).__name__}, indent=2))
            raise typer.Exit(1)
        console.print(tracker.render())
        console.print(f"\n[red]Error:[/red] {escape(str(exc))}")
        if isinstance(exc, AnchorNotFound):
            console.print(
                "[yellow]The anchor line is gone from the target file. "
                "Update patch.anchor in .forksync/config.yaml before syncing again.[/yellow]"
            )
        elif isinstance(exc, MergeConflictError):
            console.print("[yellow]Resolve the merge conflict manually, then re-run the sync.[/yellow]")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    console.print(tracker.render())
    console.print(f"\n[bold green]Fork is in sync with {report.upstream_ref}[/bold green]")
