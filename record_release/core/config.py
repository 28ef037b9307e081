"""Typed configuration loading from the CI environment.

Step inputs arrive as ``INPUT_<NAME>`` environment variables (the GitHub
Actions convention, where ``dry-run`` becomes ``INPUT_DRY-RUN``). Workflow
context (commit sha, repository, event payload) comes from the ``GITHUB_*``
variables. Both are parsed once into frozen dataclasses.
"""

from __future__ import annotations

import json
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .structured import as_str_dict, get_bool, get_raw_str, get_str, get_table

__all__ = [
    "ActionInputs",
    "GithubContext",
    "DEFAULT_API_URL",
    "DEFAULT_BUMP",
    "DEFAULT_GITHUB_API_URL",
    "input_env_name",
]

DEFAULT_API_URL = "https://ops.groo.dev"
DEFAULT_BUMP = "patch"
DEFAULT_GITHUB_API_URL = "https://api.github.com"


def input_env_name(name: str) -> str:
    """Environment variable carrying the step input ``name``."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


@dataclass(frozen=True, slots=True)
class ActionInputs:
    """Raw step inputs.

    Presence matters for mode resolution, so optional strings are None when
    the input is unset or blank. Booleans are only true for "true".
    """

    token: str | None = None
    secret_key: str | None = None
    environment: str | None = None
    version: str | None = None
    bump: str = DEFAULT_BUMP
    dry_run: bool = False
    get_version: bool = False
    load_config: bool = False
    skip_github_release: bool = False
    release_prefix: str | None = None
    github_token: str | None = None
    body: str | None = None
    body_file: str | None = None
    draft: bool = False
    prerelease: bool = False
    artifacts: str | None = None
    commit_hash: str | None = None
    commit_message: str | None = None
    deployed_by: str | None = None
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> ActionInputs:
        """Create inputs from a mapping of environment variables."""
        values: dict[str, object] = {
            name: value for name, value in env.items() if name.startswith("INPUT_")
        }

        def text(name: str) -> str | None:
            return get_str(values, input_env_name(name))

        def flag(name: str) -> bool:
            return get_bool(values, input_env_name(name))

        api_url = text("api-url") or DEFAULT_API_URL
        return cls(
            token=text("token"),
            secret_key=text("secret-key"),
            environment=text("environment"),
            version=text("version"),
            bump=text("bump") or DEFAULT_BUMP,
            dry_run=flag("dry-run"),
            get_version=flag("get-version"),
            load_config=flag("load-config"),
            skip_github_release=flag("skip-github-release"),
            release_prefix=text("release-prefix"),
            github_token=text("github-token"),
            body=get_raw_str(values, input_env_name("body")),
            body_file=text("body-file"),
            draft=flag("draft"),
            prerelease=flag("prerelease"),
            artifacts=text("artifacts"),
            commit_hash=text("commit-hash"),
            commit_message=get_raw_str(values, input_env_name("commit-message")),
            deployed_by=text("deployed-by"),
            api_url=api_url.rstrip("/"),
        )

    def secrets(self) -> tuple[str, ...]:
        """Sensitive input values that must never appear in logs."""
        return tuple(v for v in (self.token, self.github_token, self.secret_key) if v)


@dataclass(frozen=True, slots=True)
class GithubContext:
    """Workflow run context needed by the release steps."""

    sha: str | None = None
    repository: str | None = None
    api_url: str = DEFAULT_GITHUB_API_URL
    workspace: Path = Path(".")
    temp_dir: Path = Path(tempfile.gettempdir())
    head_commit_message: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> GithubContext:
        workspace = env.get("GITHUB_WORKSPACE") or "."
        temp_dir = env.get("RUNNER_TEMP") or tempfile.gettempdir()
        event_path = env.get("GITHUB_EVENT_PATH")
        return cls(
            sha=env.get("GITHUB_SHA") or None,
            repository=env.get("GITHUB_REPOSITORY") or None,
            api_url=(env.get("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL).rstrip("/"),
            workspace=Path(workspace),
            temp_dir=Path(temp_dir),
            head_commit_message=_head_commit_message(Path(event_path)) if event_path else None,
        )


def _head_commit_message(event_path: Path) -> str | None:
    """Read ``head_commit.message`` from the workflow event payload (push events)."""
    try:
        obj: object = json.loads(event_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None

    event = as_str_dict(obj)
    if event is None:
        return None
    head_commit = get_table(event, "head_commit")
    if head_commit is None:
        return None
    return get_raw_str(head_commit, "message")
