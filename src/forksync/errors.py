"""Error types raised by fork-sync library code.

Library modules raise these; only the CLI layer turns them into exit codes.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

__all__ = [
    "ForkSyncError",
    "AnchorNotFound",
    "InvalidRuleError",
    "DocumentNotFoundError",
    "DocumentDecodeError",
    "DocumentIOError",
    "ConfigError",
    "GitCommandError",
    "MergeConflictError",
    "NotAGitRepositoryError",
]


class ForkSyncError(RuntimeError):
    """Base class for all fork-sync failures."""


class AnchorNotFound(ForkSyncError):
    """No line of the document matched the rule's anchor pattern."""

    def __init__(self, anchor_pattern: str, source: str | None = None):
        self.anchor_pattern = anchor_pattern
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(
            f"No line matching anchor pattern {anchor_pattern!r} found{where}; "
            "the target document may have drifted from the expected layout."
        )


class InvalidRuleError(ForkSyncError, ValueError):
    """An insertion rule was constructed from unusable values."""


class DocumentNotFoundError(ForkSyncError):
    """The file to patch does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Document not found: {path}")


class DocumentDecodeError(ForkSyncError):
    """The file to patch is not valid UTF-8."""

    def __init__(self, path: Path, cause: UnicodeDecodeError):
        self.path = path
        self.position = cause.start
        super().__init__(f"Document is not valid UTF-8: {path} (byte offset {cause.start})")


class DocumentIOError(ForkSyncError):
    """The file to patch could not be read or written."""

    def __init__(self, path: Path, operation: str, cause: OSError):
        self.path = path
        self.operation = operation
        reason = cause.strerror or str(cause)
        super().__init__(f"Cannot {operation} document {path}: {reason}")


class ConfigError(ForkSyncError):
    """Raised when .forksync/config.yaml is invalid."""


class GitCommandError(ForkSyncError):
    """A git invocation exited non-zero."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = _first_line(stderr)
        message = f"git {' '.join(self.args_list)} failed with exit code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MergeConflictError(GitCommandError):
    """Merging the upstream branch did not complete cleanly."""


class NotAGitRepositoryError(ForkSyncError):
    """The working directory is not inside a git work tree."""


def _first_line(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""
