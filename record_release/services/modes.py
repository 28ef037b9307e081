"""Classify a step invocation into exactly one operating mode.

Jobs of a multi-job release share nothing but blob storage, so the inputs a
step receives decide its role in the transaction:

=====================  ==========================================
mode                   inputs
=====================  ==========================================
upload                 no token, artifacts
finalize               token only (no environment/version/flags)
query-version          token, environment, get-version
init                   token, environment, dry-run
explicit               token, environment, version
single-job             token, environment
=====================  ==========================================

Validation (environment, bump) happens here, before any network call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, TypeAlias, cast

from record_release.core.config import ActionInputs
from record_release.core.result import Err, Ok, Result
from record_release.release.errors import ReleaseError
from record_release.release.model import (
    BUMPS,
    ENVIRONMENTS,
    Bump,
    CommitInfo,
    Environment,
    ReleaseOptions,
)

__all__ = [
    "ExplicitMode",
    "FinalizeMode",
    "InitMode",
    "Mode",
    "QueryVersionMode",
    "SingleJobMode",
    "UploadMode",
    "resolve_mode",
]


@dataclass(frozen=True, slots=True)
class UploadMode:
    """Contribute artifacts only; owns no transaction."""

    name: ClassVar[str] = "upload"
    artifacts: str


@dataclass(frozen=True, slots=True)
class FinalizeMode:
    """Resume the session published by an init job and record it."""

    name: ClassVar[str] = "finalize"
    token: str
    github_token: str | None
    artifacts: str | None


@dataclass(frozen=True, slots=True)
class QueryVersionMode:
    name: ClassVar[str] = "query-version"
    token: str
    api_url: str
    environment: Environment


@dataclass(frozen=True, slots=True)
class InitMode:
    """Compute the next version and publish a session for a later job."""

    name: ClassVar[str] = "init"
    token: str
    api_url: str
    environment: Environment
    bump: Bump
    options: ReleaseOptions
    commit: CommitInfo
    artifacts: str | None


@dataclass(frozen=True, slots=True)
class ExplicitMode:
    """Record a caller-chosen version right away, within this step."""

    name: ClassVar[str] = "explicit"
    token: str
    api_url: str
    environment: Environment
    version: str
    options: ReleaseOptions
    commit: CommitInfo
    github_token: str | None
    artifacts: str | None


@dataclass(frozen=True, slots=True)
class SingleJobMode:
    """Compute the next version now, record it in this step's post phase."""

    name: ClassVar[str] = "single-job"
    token: str
    api_url: str
    environment: Environment
    bump: Bump
    options: ReleaseOptions
    commit: CommitInfo
    github_token: str | None
    artifacts: str | None


Mode: TypeAlias = UploadMode | FinalizeMode | QueryVersionMode | InitMode | ExplicitMode | SingleJobMode


def _invalid(message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="invalid_input", message=message))


def _validate_environment(value: str) -> Result[Environment, ReleaseError]:
    if value not in ENVIRONMENTS:
        return _invalid(f"Invalid environment: {value}. Must be one of: {', '.join(ENVIRONMENTS)}")
    return Ok(cast(Environment, value))


def _validate_bump(value: str) -> Result[Bump, ReleaseError]:
    if value not in BUMPS:
        return _invalid(f"Invalid bump: {value}. Must be one of: {', '.join(BUMPS)}")
    return Ok(cast(Bump, value))


def resolve_mode(
    inputs: ActionInputs,
    *,
    commit: CommitInfo,
    body: str | None,
) -> Result[Mode, ReleaseError]:
    """Pick the mode for this invocation.

    Args:
        inputs: Raw step inputs
        commit: Commit metadata with workflow defaults applied
        body: Release body, already read from ``body-file`` when needed

    Returns:
        Ok with exactly one mode, or Err(invalid_input)
    """
    token = inputs.token
    if not token:
        if inputs.artifacts:
            return Ok(UploadMode(artifacts=inputs.artifacts))
        return _invalid("token is required")

    if not (inputs.environment or inputs.version or inputs.dry_run or inputs.get_version):
        return Ok(
            FinalizeMode(
                token=token,
                github_token=inputs.github_token,
                artifacts=inputs.artifacts,
            )
        )

    if not inputs.environment:
        return _invalid("environment is required")
    environment = _validate_environment(inputs.environment)
    if isinstance(environment, Err):
        return environment

    if inputs.get_version:
        return Ok(QueryVersionMode(token=token, api_url=inputs.api_url, environment=environment.value))

    options = ReleaseOptions(
        release_prefix=inputs.release_prefix,
        skip_github_release=inputs.skip_github_release,
        body=body,
        draft=inputs.draft,
        prerelease=inputs.prerelease,
    )

    if inputs.version and not inputs.dry_run:
        return Ok(
            ExplicitMode(
                token=token,
                api_url=inputs.api_url,
                environment=environment.value,
                version=inputs.version,
                options=options,
                commit=commit,
                github_token=inputs.github_token,
                artifacts=inputs.artifacts,
            )
        )

    bump = _validate_bump(inputs.bump)
    if isinstance(bump, Err):
        return bump

    if inputs.dry_run:
        return Ok(
            InitMode(
                token=token,
                api_url=inputs.api_url,
                environment=environment.value,
                bump=bump.value,
                options=options,
                commit=commit,
                artifacts=inputs.artifacts,
            )
        )

    return Ok(
        SingleJobMode(
            token=token,
            api_url=inputs.api_url,
            environment=environment.value,
            bump=bump.value,
            options=options,
            commit=commit,
            github_token=inputs.github_token,
            artifacts=inputs.artifacts,
        )
    )
