"""Project configuration stored in .forksync/config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from forksync.errors import ConfigError, InvalidRuleError
from forksync.patcher import InsertionRule
from forksync.rules import VW_VERSION_RULE, rule_from_mapping

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "DEFAULT_UPSTREAM_URL",
    "ForkSyncConfig",
    "GitIdentity",
    "RemoteBranch",
    "config_path",
    "load_config",
    "locate_repo_root",
    "save_config",
]

CONFIG_DIR = ".forksync"
CONFIG_FILE = "config.yaml"

DEFAULT_UPSTREAM_URL = "https://github.com/dani-garcia/vaultwarden.git"
DEFAULT_COMMIT_MESSAGE = "Auto-sync: inject VW_VERSION ARG/ENV into Dockerfile"


@dataclass(slots=True)
class RemoteBranch:
    """A git remote plus the branch tracked on it."""

    remote: str
    branch: str = "main"
    url: str | None = None

    @property
    def ref(self) -> str:
        return f"{self.remote}/{self.branch}"

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"remote": self.remote, "branch": self.branch}
        if self.url is not None:
            payload["url"] = self.url
        return payload


@dataclass(slots=True)
class GitIdentity:
    """Author identity used for sync commits."""

    user_name: str = "github-actions[bot]"
    user_email: str = "github-actions[bot]@users.noreply.github.com"

    def to_dict(self) -> dict[str, object]:
        return {"user_name": self.user_name, "user_email": self.user_email}


def _default_upstream() -> RemoteBranch:
    return RemoteBranch(remote="upstream", branch="main", url=DEFAULT_UPSTREAM_URL)


def _default_origin() -> RemoteBranch:
    return RemoteBranch(remote="origin", branch="main")


@dataclass(slots=True)
class ForkSyncConfig:
    """Effective fork-sync settings."""

    upstream: RemoteBranch = field(default_factory=_default_upstream)
    origin: RemoteBranch = field(default_factory=_default_origin)
    identity: GitIdentity = field(default_factory=GitIdentity)
    target_file: str = "Dockerfile"
    rule: InsertionRule = VW_VERSION_RULE
    commit_message: str = DEFAULT_COMMIT_MESSAGE

    def to_dict(self) -> dict[str, object]:
        return {
            "upstream": self.upstream.to_dict(),
            "origin": self.origin.to_dict(),
            "git": self.identity.to_dict(),
            "patch": {"file": self.target_file, **self.rule.to_dict()},
            "commit_message": self.commit_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ForkSyncConfig":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("Top level of the configuration must be a mapping")

        defaults = cls()
        upstream = _remote_from(data.get("upstream"), defaults.upstream, "upstream")
        origin = _remote_from(data.get("origin"), defaults.origin, "origin")

        git_section = _section(data, "git")
        identity = GitIdentity(
            user_name=_string(git_section, "user_name", defaults.identity.user_name, "git"),
            user_email=_string(git_section, "user_email", defaults.identity.user_email, "git"),
        )

        patch_section = _section(data, "patch")
        target_file = _string(patch_section, "file", defaults.target_file, "patch")
        rule_keys = {k: v for k, v in patch_section.items() if k in ("marker", "anchor", "insert")}
        try:
            rule = rule_from_mapping(rule_keys)
        except InvalidRuleError as exc:
            raise ConfigError(f"Invalid patch rule: {exc}") from exc

        commit_message = _string(data, "commit_message", defaults.commit_message, "top level")

        return cls(
            upstream=upstream,
            origin=origin,
            identity=identity,
            target_file=target_file,
            rule=rule,
            commit_message=commit_message,
        )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _string(data: dict[str, Any], key: str, default: str, where: str) -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{key}' in {where} must be a non-empty string")
    return value.strip()


def _remote_from(value: Any, default: RemoteBranch, name: str) -> RemoteBranch:
    if value is None:
        return default
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    url = value.get("url", default.url)
    if url is not None and not isinstance(url, str):
        raise ConfigError(f"'url' in {name} must be a string")
    return RemoteBranch(
        remote=_string(value, "remote", default.remote, name),
        branch=_string(value, "branch", default.branch, name),
        url=url.strip() if isinstance(url, str) and url.strip() else None,
    )


def config_path(repo_root: Path) -> Path:
    return repo_root / CONFIG_DIR / CONFIG_FILE


def load_config(repo_root: Path) -> ForkSyncConfig:
    """Load .forksync/config.yaml, falling back to defaults when absent."""
    path = config_path(repo_root)
    if not path.exists():
        return ForkSyncConfig()

    yaml = YAML()
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle)
    except YAMLError as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc

    return ForkSyncConfig.from_dict(payload)


def save_config(repo_root: Path, config: ForkSyncConfig) -> Path:
    """Write *config* to .forksync/config.yaml, preserving unrelated keys."""
    path = config_path(repo_root)
    path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.preserve_quotes = True

    payload: Any = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    if not isinstance(payload, dict):
        payload = {}

    payload.update(config.to_dict())

    with path.open("w", encoding="utf-8") as handle:
        yaml.dump(payload, handle)
    return path


def locate_repo_root(start: Path | None = None) -> Path | None:
    """Walk up from *start* to the nearest directory holding .forksync/ or .git."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / CONFIG_DIR).is_dir() or (candidate / ".git").exists():
            return candidate
    return None
