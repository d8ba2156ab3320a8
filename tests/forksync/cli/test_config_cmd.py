"""CLI tests for ``forksync config``, ``forksync init`` and global options."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from forksync import __version__
from forksync import app as cli_app
from forksync.config import config_path, load_config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / ".forksync").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_config_json_shows_defaults(runner, project):
    result = runner.invoke(cli_app, ["config", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["upstream"]["remote"] == "upstream"
    assert payload["patch"]["file"] == "Dockerfile"
    assert payload["patch"]["marker"] == "ARG VW_VERSION"


def test_config_table(runner, project):
    result = runner.invoke(cli_app, ["config"])

    assert result.exit_code == 0, result.output
    assert "built-in defaults" in result.output
    assert "github-actions[bot]" in result.output


def test_config_invalid_file_exits_one(runner, project):
    config_path(project).write_text("upstream: 3\n", encoding="utf-8")

    result = runner.invoke(cli_app, ["config"])

    assert result.exit_code == 1
    assert "must be a mapping" in result.output


def test_init_writes_defaults_once(runner, project):
    result = runner.invoke(cli_app, ["init"])
    assert result.exit_code == 0, result.output
    assert load_config(project).target_file == "Dockerfile"

    again = runner.invoke(cli_app, ["init"])
    assert again.exit_code == 1
    assert "already exists" in again.output

    forced = runner.invoke(cli_app, ["init", "--force"])
    assert forced.exit_code == 0


def test_version_flag(runner):
    result = runner.invoke(cli_app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_no_args_shows_help(runner):
    result = runner.invoke(cli_app, [])
    assert "patch" in result.output
    assert "sync" in result.output
