from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from tests.utils import DOCKERFILE, commit_file, git, init_repo


@dataclass
class ForkLayout:
    upstream: Path
    origin: Path
    fork: Path


@pytest.fixture()
def fork_layout(tmp_path: Path) -> ForkLayout:
    """An upstream repo, a bare origin cloned from it, and a fork working tree."""
    upstream = init_repo(tmp_path / "upstream")
    commit_file(upstream, "Dockerfile", DOCKERFILE, "Add Dockerfile")
    commit_file(upstream, "README.md", "upstream\n", "Add README")

    origin = tmp_path / "origin.git"
    git(tmp_path, "clone", "--bare", str(upstream), str(origin))

    fork = tmp_path / "fork"
    git(tmp_path, "clone", str(origin), str(fork))
    git(fork, "config", "commit.gpgsign", "false")
    return ForkLayout(upstream=upstream, origin=origin, fork=fork)


@pytest.fixture()
def dockerfile(tmp_path: Path) -> Path:
    path = tmp_path / "Dockerfile"
    path.write_text(DOCKERFILE, encoding="utf-8")
    return path
