from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


Environment = Literal["production", "staging", "development"]
Bump = Literal["major", "minor", "patch"]

ENVIRONMENTS: tuple[Environment, ...] = ("production", "staging", "development")
BUMPS: tuple[Bump, ...] = ("major", "minor", "patch")


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """How the optional GitHub release is created."""

    release_prefix: str | None = None
    skip_github_release: bool = False
    body: str | None = None
    draft: bool = False
    prerelease: bool = False


@dataclass(frozen=True, slots=True)
class CommitInfo:
    commit_hash: str | None = None
    # First line only.
    commit_message: str | None = None
    deployed_by: str | None = None


@dataclass(frozen=True, slots=True)
class Session:
    """Release transaction context handed from an init job to a finalize job.

    Published once to blob storage and only ever read afterwards.
    """

    environment: Environment
    version: str
    application_name: str
    api_url: str
    release_prefix: str | None = None
    skip_github_release: bool = False
    body: str | None = None
    draft: bool = False
    prerelease: bool = False
    commit_hash: str | None = None
    commit_message: str | None = None
    deployed_by: str | None = None

    @classmethod
    def create(
        cls,
        *,
        environment: Environment,
        version: str,
        application_name: str,
        api_url: str,
        options: ReleaseOptions,
        commit: CommitInfo,
    ) -> Session:
        return cls(
            environment=environment,
            version=version,
            application_name=application_name,
            api_url=api_url,
            release_prefix=options.release_prefix,
            skip_github_release=options.skip_github_release,
            body=options.body,
            draft=options.draft,
            prerelease=options.prerelease,
            commit_hash=commit.commit_hash,
            commit_message=commit.commit_message,
            deployed_by=commit.deployed_by,
        )

    @property
    def options(self) -> ReleaseOptions:
        return ReleaseOptions(
            release_prefix=self.release_prefix,
            skip_github_release=self.skip_github_release,
            body=self.body,
            draft=self.draft,
            prerelease=self.prerelease,
        )

    @property
    def commit(self) -> CommitInfo:
        return CommitInfo(
            commit_hash=self.commit_hash,
            commit_message=self.commit_message,
            deployed_by=self.deployed_by,
        )


@dataclass(frozen=True, slots=True)
class NextVersion:
    """Dry-run answer from the ledger: the version a deploy would get."""

    version: str
    environment: str
    application_id: str
    application_name: str


@dataclass(frozen=True, slots=True)
class CurrentVersion:
    version: str
    environment: str
    deployed_at: str
    commit_hash: str | None
    deployed_by: str | None


@dataclass(frozen=True, slots=True)
class DeploymentRecord:
    """A recorded release. Owned by the ledger; never mutated here."""

    id: str
    application_id: str
    application_name: str
    version: str
    environment: str
    commit_hash: str | None
    commit_message: str | None
    git_tag: str | None
    deployed_by: str | None
    deployed_at: str | None
    metadata: dict[str, object] | None = None


def _empty_str_map() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class EnvironmentConfig:
    """Per-environment configuration. Secret values are still encrypted."""

    variables: dict[str, str] = field(default_factory=_empty_str_map)
    secrets: dict[str, str] = field(default_factory=_empty_str_map)
