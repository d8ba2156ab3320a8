"""End-to-end tests for the fork sync workflow against real git repositories."""

from __future__ import annotations

from pathlib import Path

import pytest

from forksync.cli.ui import StepTracker
from forksync.config import ForkSyncConfig, RemoteBranch
from forksync.errors import (
    AnchorNotFound,
    DocumentDecodeError,
    ForkSyncError,
    MergeConflictError,
    NotAGitRepositoryError,
)
from forksync.patcher import ApplyResult
from forksync.upstream import SYNC_STEPS, sync_fork
from tests.utils import commit_file, git


def _config(layout) -> ForkSyncConfig:
    config = ForkSyncConfig()
    config.upstream = RemoteBranch(remote="upstream", branch="main", url=str(layout.upstream))
    return config


def _origin_head_message(layout) -> str:
    return git(layout.origin, "log", "-1", "--format=%s", "main")


def test_first_sync_patches_commits_and_pushes(fork_layout):
    config = _config(fork_layout)

    report = sync_fork(fork_layout.fork, config)

    assert report.patch is not None
    assert report.patch.result is ApplyResult.INSERTED
    assert report.committed is True
    assert report.pushed is True
    assert _origin_head_message(fork_layout) == config.commit_message
    assert git(fork_layout.fork, "log", "-1", "--format=%an") == "github-actions[bot]"
    lines = (fork_layout.fork / "Dockerfile").read_text(encoding="utf-8").splitlines()
    assert lines[1] == "ARG VW_VERSION"


def test_second_sync_is_a_noop(fork_layout):
    config = _config(fork_layout)
    sync_fork(fork_layout.fork, config)
    head = git(fork_layout.fork, "rev-parse", "HEAD")

    report = sync_fork(fork_layout.fork, config)

    assert report.patch.result is ApplyResult.UNCHANGED
    assert report.committed is False
    assert git(fork_layout.fork, "rev-parse", "HEAD") == head
    dockerfile = (fork_layout.fork / "Dockerfile").read_text(encoding="utf-8")
    assert dockerfile.count("ARG VW_VERSION") == 1


def test_upstream_changes_are_merged_without_reinserting(fork_layout):
    config = _config(fork_layout)
    sync_fork(fork_layout.fork, config)
    commit_file(fork_layout.upstream, "CHANGELOG.md", "1.0\n", "Release 1.0")

    report = sync_fork(fork_layout.fork, config)

    assert (fork_layout.fork / "CHANGELOG.md").read_text(encoding="utf-8") == "1.0\n"
    assert report.patch.result is ApplyResult.UNCHANGED
    assert report.committed is False
    assert git(fork_layout.origin, "show", "main:CHANGELOG.md") == "1.0"


def test_no_push_leaves_origin_alone(fork_layout):
    before = git(fork_layout.origin, "rev-parse", "main")

    report = sync_fork(fork_layout.fork, _config(fork_layout), push=False)

    assert report.committed is True
    assert report.pushed is False
    assert git(fork_layout.origin, "rev-parse", "main") == before


def test_missing_anchor_aborts_before_commit(fork_layout):
    commit_file(fork_layout.upstream, "Dockerfile", "FROM docker.io/library/alpine:3.19\n", "Switch base")
    before = git(fork_layout.origin, "rev-parse", "main")
    tracker = StepTracker("sync", SYNC_STEPS)

    with pytest.raises(AnchorNotFound):
        sync_fork(fork_layout.fork, _config(fork_layout), tracker=tracker)

    assert tracker.status_of("merge") == "done"
    assert tracker.status_of("patch") == "error"
    assert tracker.status_of("commit") == "pending"
    assert git(fork_layout.origin, "rev-parse", "main") == before


def test_undecodable_target_aborts_before_commit(fork_layout):
    (fork_layout.upstream / "Dockerfile").write_bytes(b"FROM docker.io/library/rust:1 AS build\n# caf\xe9\n")
    git(fork_layout.upstream, "add", "Dockerfile")
    git(fork_layout.upstream, "commit", "-m", "Latin-1 comment")
    before = git(fork_layout.origin, "rev-parse", "main")
    tracker = StepTracker("sync", SYNC_STEPS)

    with pytest.raises(DocumentDecodeError):
        sync_fork(fork_layout.fork, _config(fork_layout), tracker=tracker)

    assert tracker.status_of("patch") == "error"
    assert tracker.status_of("commit") == "pending"
    assert git(fork_layout.origin, "rev-parse", "main") == before


def test_merge_conflict_stops_the_run(fork_layout):
    fork = fork_layout.fork
    git(fork, "config", "user.name", "Fork Dev")
    git(fork, "config", "user.email", "dev@example.com")
    commit_file(fork, "README.md", "fork edit\n", "Fork README")
    commit_file(fork_layout.upstream, "README.md", "upstream edit\n", "Upstream README")

    with pytest.raises(MergeConflictError):
        sync_fork(fork, _config(fork_layout), push=False)


def test_not_a_repository(tmp_path: Path):
    with pytest.raises(NotAGitRepositoryError):
        sync_fork(tmp_path, ForkSyncConfig())


def test_existing_remote_is_used_when_no_url(fork_layout):
    git(fork_layout.fork, "remote", "add", "upstream", str(fork_layout.upstream))
    config = ForkSyncConfig()
    config.upstream = RemoteBranch(remote="upstream", branch="main", url=None)

    report = sync_fork(fork_layout.fork, config, push=False)

    assert report.patch.result is ApplyResult.INSERTED


def test_missing_remote_without_url_fails(fork_layout):
    config = ForkSyncConfig()
    config.upstream = RemoteBranch(remote="upstream", branch="main", url=None)

    with pytest.raises(ForkSyncError, match="not configured"):
        sync_fork(fork_layout.fork, config)


def test_report_records_steps(fork_layout):
    tracker = StepTracker("sync", SYNC_STEPS)

    report = sync_fork(fork_layout.fork, _config(fork_layout), push=False, tracker=tracker)

    payload = report.to_dict()
    assert payload["patch"]["result"] == "inserted"
    assert payload["upstream_ref"] == "upstream/main"
    assert any(step.startswith("push: skipped") for step in payload["steps"])
    assert tracker.status_of("push") == "skipped"
    assert tracker.status_of("commit") == "done"
