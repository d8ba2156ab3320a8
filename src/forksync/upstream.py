"""Synchronize a fork with its upstream and re-apply the local patch.

The workflow mirrors what the scheduled CI job does:

1. verify the working directory is a git work tree
2. configure the commit identity
3. make sure the upstream remote exists and points at the right URL
4. fetch and merge ``upstream/<branch>`` without an editor
5. apply the insertion rule to the target file
6. commit the target file if it differs from HEAD
7. push to ``origin/<branch>``

Any failure stops the run before later steps. In particular a missing anchor
line aborts before anything is committed or pushed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from forksync import git
from forksync.config import ForkSyncConfig
from forksync.document import FilePatchResult, patch_file
from forksync.errors import ForkSyncError, NotAGitRepositoryError

if TYPE_CHECKING:
    from forksync.cli.ui import StepTracker

__all__ = ["SYNC_STEPS", "SyncReport", "sync_fork"]

logger = logging.getLogger(__name__)

SYNC_STEPS: list[tuple[str, str]] = [
    ("preflight", "Check git repository"),
    ("identity", "Configure commit identity"),
    ("remote", "Ensure upstream remote"),
    ("fetch", "Fetch upstream"),
    ("merge", "Merge upstream branch"),
    ("patch", "Patch target file"),
    ("commit", "Commit changes"),
    ("push", "Push to origin"),
]


@dataclass
class SyncReport:
    """What a sync run did."""

    repo_root: Path
    upstream_ref: str
    merge_summary: str = ""
    patch: FilePatchResult | None = None
    committed: bool = False
    pushed: bool = False
    steps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "repo_root": str(self.repo_root),
            "upstream_ref": self.upstream_ref,
            "merge_summary": self.merge_summary,
            "patch": self.patch.to_dict() if self.patch else None,
            "committed": self.committed,
            "pushed": self.pushed,
            "steps": list(self.steps),
        }


class _Steps:
    """Forwards progress to an optional tracker and records it in the report."""

    def __init__(self, report: SyncReport, tracker: "StepTracker | None"):
        self.report = report
        self.tracker = tracker
        self.current: str | None = None

    def start(self, key: str, detail: str = "") -> None:
        self.current = key
        if self.tracker:
            self.tracker.start(key, detail)

    def complete(self, key: str, detail: str = "") -> None:
        self.current = None
        self.report.steps.append(f"{key}: {detail}" if detail else key)
        if self.tracker:
            self.tracker.complete(key, detail)

    def skip(self, key: str, detail: str = "") -> None:
        self.report.steps.append(f"{key}: skipped ({detail})" if detail else f"{key}: skipped")
        if self.tracker:
            self.tracker.skip(key, detail)

    def fail(self, detail: str) -> None:
        if self.current and self.tracker:
            self.tracker.error(self.current, detail)


def sync_fork(
    repo_root: Path,
    config: ForkSyncConfig,
    *,
    push: bool = True,
    tracker: "StepTracker | None" = None,
) -> SyncReport:
    """Merge upstream into the fork, patch the target file, commit and push.

    Args:
        repo_root: Root of the fork's working tree
        config: Effective configuration
        push: Push the result to origin when True
        tracker: Optional step tracker for progress rendering

    Returns:
        SyncReport for the run

    Raises:
        NotAGitRepositoryError: If repo_root is not a git work tree
        MergeConflictError: If the upstream merge fails
        AnchorNotFound: If the target file lost its anchor line
        GitCommandError: For any other failing git command
    """
    root = repo_root.resolve()
    upstream = config.upstream
    report = SyncReport(repo_root=root, upstream_ref=upstream.ref)
    steps = _Steps(report, tracker)

    try:
        steps.start("preflight")
        if not git.is_git_repository(root):
            raise NotAGitRepositoryError(f"Not a git work tree: {root}")
        steps.complete("preflight", str(root))

        steps.start("identity")
        git.configure_identity(root, config.identity.user_name, config.identity.user_email)
        steps.complete("identity", config.identity.user_name)

        steps.start("remote")
        if upstream.url:
            changed = git.ensure_remote(root, upstream.remote, upstream.url)
            steps.complete("remote", f"{upstream.remote} {'configured' if changed else 'present'}")
        elif git.remote_url(root, upstream.remote) is None:
            raise ForkSyncError(
                f"Remote '{upstream.remote}' is not configured and no upstream URL was given"
            )
        else:
            steps.complete("remote", f"{upstream.remote} present")

        steps.start("fetch")
        git.fetch(root, upstream.remote)
        steps.complete("fetch", upstream.remote)

        steps.start("merge", upstream.ref)
        report.merge_summary = git.merge(root, upstream.ref)
        steps.complete("merge", upstream.ref)

        steps.start("patch", config.target_file)
        report.patch = patch_file(root / config.target_file, config.rule)
        steps.complete("patch", report.patch.result.value)

        steps.start("commit")
        if git.has_changes(root, config.target_file):
            git.add(root, config.target_file)
            git.commit(root, config.commit_message)
            report.committed = True
            steps.complete("commit", config.commit_message)
        else:
            steps.skip("commit", f"{config.target_file} unchanged")

        if push:
            steps.start("push", config.origin.ref)
            git.push(root, config.origin.remote, config.origin.branch)
            report.pushed = True
            steps.complete("push", config.origin.ref)
        else:
            steps.skip("push", "disabled")
    except ForkSyncError as exc:
        steps.fail(str(exc))
        logger.debug("Sync failed at step %s: %s", steps.current, exc)
        raise

    logger.info(
        "Synced %s with %s (patch=%s, committed=%s, pushed=%s)",
        root,
        upstream.ref,
        report.patch.result.value if report.patch else None,
        report.committed,
        report.pushed,
    )
    return report
