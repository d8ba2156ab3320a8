"""Thin subprocess wrapper around the git commands used by the sync workflow."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from forksync.errors import GitCommandError, MergeConflictError

__all__ = [
    "GitResult",
    "run_git",
    "is_git_repository",
    "configure_identity",
    "remote_url",
    "ensure_remote",
    "fetch",
    "merge",
    "has_changes",
    "add",
    "commit",
    "push",
]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120


@dataclass
class GitResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_git(
    repo_root: Path,
    args: list[str],
    *,
    check: bool = True,
    timeout: int = DEFAULT_TIMEOUT,
) -> GitResult:
    """Run ``git <args>`` in *repo_root*.

    A missing git executable is reported as exit code 127 and a timeout as
    124, so callers see one failure shape. With ``check`` a non-zero exit
    raises :class:`GitCommandError`.
    """
    logger.debug("git %s", " ".join(args))
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=str(repo_root),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout,
        )
        result = GitResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
    except FileNotFoundError:
        result = GitResult(returncode=127, stdout="", stderr="git executable not found on PATH")
    except subprocess.TimeoutExpired:
        result = GitResult(returncode=124, stdout="", stderr=f"git command timed out: git {' '.join(args)}")

    if check and not result.ok:
        raise GitCommandError(args, result.returncode, result.stderr)
    return result


def is_git_repository(repo_root: Path) -> bool:
    result = run_git(repo_root, ["rev-parse", "--is-inside-work-tree"], check=False)
    return result.ok and result.stdout.strip().lower() == "true"


def configure_identity(repo_root: Path, user_name: str, user_email: str) -> None:
    """Set the repository-local commit author."""
    run_git(repo_root, ["config", "user.name", user_name])
    run_git(repo_root, ["config", "user.email", user_email])


def remote_url(repo_root: Path, name: str) -> str | None:
    result = run_git(repo_root, ["remote", "get-url", name], check=False)
    if not result.ok:
        return None
    return result.stdout.strip() or None


def ensure_remote(repo_root: Path, name: str, url: str) -> bool:
    """Make sure remote *name* points at *url*.

    Returns:
        True if the remote was added or its URL changed, False if it was
        already configured.
    """
    current = remote_url(repo_root, name)
    if current == url:
        return False
    if current is None:
        run_git(repo_root, ["remote", "add", name, url])
        logger.info("Added remote %s -> %s", name, url)
    else:
        run_git(repo_root, ["remote", "set-url", name, url])
        logger.info("Updated remote %s: %s -> %s", name, current, url)
    return True


def fetch(repo_root: Path, remote: str) -> None:
    run_git(repo_root, ["fetch", remote], timeout=600)


def merge(repo_root: Path, ref: str) -> str:
    """Merge *ref* into the current branch without opening an editor.

    Returns:
        git's merge summary (stdout)

    Raises:
        MergeConflictError: If the merge did not complete
    """
    args = ["merge", "--no-edit", ref]
    result = run_git(repo_root, args, check=False)
    if not result.ok:
        # git reports conflicts on stdout, other failures on stderr
        output = "\n".join(part for part in (result.stderr.strip(), result.stdout.strip()) if part)
        raise MergeConflictError(args, result.returncode, output)
    return result.stdout.strip()


def has_changes(repo_root: Path, path: str) -> bool:
    """Return True when *path* differs from the index (``git diff --quiet``)."""
    result = run_git(repo_root, ["diff", "--quiet", "--", path], check=False)
    if result.returncode == 0:
        return False
    if result.returncode == 1:
        return True
    raise GitCommandError(["diff", "--quiet", "--", path], result.returncode, result.stderr)


def add(repo_root: Path, path: str) -> None:
    run_git(repo_root, ["add", "--", path])


def commit(repo_root: Path, message: str) -> None:
    run_git(repo_root, ["commit", "-m", message])


def push(repo_root: Path, remote: str, branch: str) -> None:
    run_git(repo_root, ["push", remote, branch], timeout=600)
