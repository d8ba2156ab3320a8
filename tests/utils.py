"""Shared helpers for tests that need real git repositories."""

from __future__ import annotations

import subprocess
from pathlib import Path

DOCKERFILE = """\
FROM docker.io/library/rust:1.79-slim-bookworm AS build
WORKDIR /app
RUN cargo build --release

FROM docker.io/library/debian:bookworm-slim
COPY --from=build /app/target/release/vaultwarden .
"""


def git(cwd: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    )
    return completed.stdout.strip()


def init_repo(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-b", "main")
    git(path, "config", "user.name", "Test User")
    git(path, "config", "user.email", "test@example.com")
    git(path, "config", "commit.gpgsign", "false")
    return path


def commit_file(repo: Path, name: str, content: str, message: str) -> None:
    (repo / name).write_text(content, encoding="utf-8")
    git(repo, "add", name)
    git(repo, "commit", "-m", message)
