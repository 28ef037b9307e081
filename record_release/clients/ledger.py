"""Ops ledger webhook API.

The ledger owns versioning: a dry-run deploy returns the version a deploy
would get, a real deploy records it. Errors come back as ``{error, code}``
and are surfaced verbatim; nothing here retries.
"""

from __future__ import annotations

import json
import urllib.parse
from dataclasses import dataclass
from typing import Any

from record_release.clients.http import HttpClient, HttpError
from record_release.core.result import Err, Ok, Result
from record_release.core.structured import StrDict, get_id, get_raw_str, get_str, get_table
from record_release.release.errors import ReleaseError
from record_release.release.model import (
    Bump,
    CommitInfo,
    CurrentVersion,
    DeploymentRecord,
    EnvironmentConfig,
    NextVersion,
)

__all__ = [
    "LedgerTarget",
    "fetch_environment_config",
    "query_current_version",
    "query_next_version",
    "record_deployment",
]


@dataclass(frozen=True, slots=True)
class LedgerTarget:
    api_url: str
    token: str

    def url(self, path: str, **query: str) -> str:
        base = f"{self.api_url.rstrip('/')}/{path.lstrip('/')}"
        if query:
            return f"{base}?{urllib.parse.urlencode(query)}"
        return base

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def _api_error(error: HttpError) -> ReleaseError:
    if error.status == 0:
        return ReleaseError(kind="network_error", message=f"ledger unreachable: {error}")
    if 200 <= error.status < 300:
        return ReleaseError(
            kind="api_error",
            message=f"malformed ledger response: {error.message}",
            hint=error.url,
        )

    body = error.json_body()
    if body is not None:
        message = get_str(body, "error")
        code = get_str(body, "code") or f"HTTP {error.status}"
        if message is not None:
            return ReleaseError(kind="api_error", message=f"API error ({code}): {message}")

    return ReleaseError(
        kind="api_error",
        message=f"API error (HTTP {error.status}): {error.message}",
        hint=error.url,
    )


def _invalid_payload(what: str, url: str) -> ReleaseError:
    return ReleaseError(kind="api_error", message=f"unexpected {what} payload", hint=url)


def _deploy(
    http: HttpClient, target: LedgerTarget, payload: dict[str, object]
) -> Result[dict[str, Any], ReleaseError]:
    result = http.request_json(
        "POST",
        target.url("/webhook/deploy"),
        headers=target.headers(),
        payload=payload,
    )
    if isinstance(result, Err):
        return Err(_api_error(result.error))
    return Ok(result.value)


def query_next_version(
    http: HttpClient,
    target: LedgerTarget,
    *,
    environment: str,
    bump: Bump | None = None,
    version: str | None = None,
) -> Result[NextVersion, ReleaseError]:
    """Ask the ledger which version a deploy would get, without recording it.

    With an explicit ``version`` this only resolves the application name.
    """
    payload: dict[str, object] = {"environment": environment, "dryRun": True}
    if version is not None:
        payload["version"] = version
    else:
        payload["bump"] = bump or "patch"

    result = _deploy(http, target, payload)
    if isinstance(result, Err):
        return result

    data = result.value
    next_version = get_str(data, "version")
    application_name = get_str(data, "applicationName")
    if next_version is None or application_name is None:
        return Err(_invalid_payload("dry-run", target.url("/webhook/deploy")))

    return Ok(
        NextVersion(
            version=next_version,
            environment=get_str(data, "environment") or environment,
            application_id=get_id(data, "applicationId") or "",
            application_name=application_name,
        )
    )


def record_deployment(
    http: HttpClient,
    target: LedgerTarget,
    *,
    environment: str,
    version: str,
    commit: CommitInfo,
    git_tag: str,
) -> Result[DeploymentRecord, ReleaseError]:
    """Record the release. This is the one committing write of a transaction."""
    payload: dict[str, object] = {
        "environment": environment,
        "version": version,
        "dryRun": False,
        "gitTag": git_tag,
    }
    if commit.commit_hash:
        payload["commitHash"] = commit.commit_hash
    if commit.commit_message:
        payload["commitMessage"] = commit.commit_message
    if commit.deployed_by:
        payload["deployedBy"] = commit.deployed_by

    result = _deploy(http, target, payload)
    if isinstance(result, Err):
        return result

    deployment = get_table(result.value, "deployment")
    if deployment is None:
        return Err(_invalid_payload("deployment", target.url("/webhook/deploy")))
    return _parse_deployment(deployment, target)


def _parse_deployment(
    data: StrDict, target: LedgerTarget
) -> Result[DeploymentRecord, ReleaseError]:
    deployment_id = get_id(data, "id")
    version = get_str(data, "version")
    if deployment_id is None or version is None:
        return Err(_invalid_payload("deployment", target.url("/webhook/deploy")))

    return Ok(
        DeploymentRecord(
            id=deployment_id,
            application_id=get_id(data, "applicationId") or "",
            application_name=get_str(data, "applicationName") or "",
            version=version,
            environment=get_str(data, "environment") or "",
            commit_hash=get_str(data, "commitHash"),
            commit_message=get_raw_str(data, "commitMessage"),
            git_tag=get_str(data, "gitTag"),
            deployed_by=get_str(data, "deployedBy"),
            deployed_at=get_str(data, "deployedAt"),
            metadata=get_table(data, "metadata"),
        )
    )


def query_current_version(
    http: HttpClient,
    target: LedgerTarget,
    *,
    environment: str,
) -> Result[CurrentVersion, ReleaseError]:
    url = target.url("/webhook/version", environment=environment)
    result = http.request_json("GET", url, headers=target.headers())
    if isinstance(result, Err):
        return Err(_api_error(result.error))

    data = result.value
    version = get_str(data, "version")
    if version is None:
        return Err(_invalid_payload("version", url))

    return Ok(
        CurrentVersion(
            version=version,
            environment=get_str(data, "environment") or environment,
            deployed_at=get_str(data, "deployedAt") or "",
            commit_hash=get_str(data, "commitHash"),
            deployed_by=get_str(data, "deployedBy"),
        )
    )


def fetch_environment_config(
    http: HttpClient,
    target: LedgerTarget,
    *,
    environment: str,
) -> Result[EnvironmentConfig, ReleaseError]:
    """Fetch variables and still-encrypted secrets for an environment.

    Secret values may arrive as the encrypted JSON string or as the decoded
    ``{iv, encryptedKey, encryptedValue}`` object; both are normalized to the
    JSON string the decryptor expects.
    """
    url = target.url("/webhook/config", environment=environment)
    result = http.request_json("GET", url, headers=target.headers())
    if isinstance(result, Err):
        return Err(_api_error(result.error))

    variables: dict[str, str] = {}
    for name, value in (get_table(result.value, "variables") or {}).items():
        if isinstance(value, str):
            variables[name] = value
        elif isinstance(value, (int, float, bool)):
            variables[name] = json.dumps(value)

    secrets: dict[str, str] = {}
    for name, value in (get_table(result.value, "secrets") or {}).items():
        if isinstance(value, str):
            secrets[name] = value
        elif isinstance(value, dict):
            secrets[name] = json.dumps(value)

    return Ok(EnvironmentConfig(variables=variables, secrets=secrets))
