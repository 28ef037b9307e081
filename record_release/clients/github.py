"""GitHub releases REST API (create release, upload assets)."""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass
from pathlib import Path

from record_release.clients.http import HttpClient, HttpError
from record_release.core.result import Err, Ok, Result
from record_release.core.structured import get_id, get_str
from record_release.release.errors import ReleaseError
from record_release.release.model import ReleaseOptions

__all__ = [
    "GithubRelease",
    "GithubRepo",
    "create_release",
    "upload_release_asset",
]

_URI_TEMPLATE_RE = re.compile(r"\{[^}]*\}$")


@dataclass(frozen=True, slots=True)
class GithubRepo:
    api_url: str
    owner: str
    name: str

    @classmethod
    def parse(cls, slug: str, *, api_url: str) -> GithubRepo | None:
        """Parse ``owner/name`` (the GITHUB_REPOSITORY format)."""
        owner, sep, name = slug.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            return None
        return cls(api_url=api_url.rstrip("/"), owner=owner, name=name)

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class GithubRelease:
    id: str
    html_url: str
    upload_url: str


def _headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def _github_error(error: HttpError, *, action: str) -> ReleaseError:
    body = error.json_body()
    detail = get_str(body, "message") if body is not None else None
    return ReleaseError(
        kind="network_error" if error.status == 0 else "api_error",
        message=f"{action} failed: {detail or error.message}",
        hint=error.url,
    )


def create_release(
    http: HttpClient,
    repo: GithubRepo,
    *,
    token: str,
    tag: str,
    options: ReleaseOptions,
) -> Result[GithubRelease, ReleaseError]:
    """Create a tagged release; notes are generated only without a custom body."""
    url = f"{repo.api_url}/repos/{repo.slug}/releases"
    payload: dict[str, object] = {
        "tag_name": tag,
        "name": tag,
        "draft": options.draft,
        "prerelease": options.prerelease,
        "generate_release_notes": not options.body,
    }
    if options.body:
        payload["body"] = options.body

    result = http.request_json("POST", url, headers=_headers(token), payload=payload)
    if isinstance(result, Err):
        return Err(_github_error(result.error, action=f"create release {tag}"))

    data = result.value
    release_id = get_id(data, "id")
    upload_url = get_str(data, "upload_url")
    if release_id is None or upload_url is None:
        return Err(
            ReleaseError(kind="api_error", message="unexpected release payload", hint=url)
        )

    return Ok(
        GithubRelease(
            id=release_id,
            html_url=get_str(data, "html_url") or "",
            upload_url=upload_url,
        )
    )


def asset_upload_url(release: GithubRelease, name: str) -> str:
    """Expand the release's ``upload_url`` template for one asset."""
    base = _URI_TEMPLATE_RE.sub("", release.upload_url)
    return f"{base}?{urllib.parse.urlencode({'name': name})}"


def upload_release_asset(
    http: HttpClient,
    release: GithubRelease,
    *,
    token: str,
    path: Path,
) -> Result[None, ReleaseError]:
    """Upload one file, named after its basename."""
    try:
        content = path.read_bytes()
    except OSError as e:
        return Err(ReleaseError(kind="io_error", message=f"cannot read asset: {e}", hint=str(path)))

    headers = _headers(token)
    headers["Content-Type"] = "application/octet-stream"
    url = asset_upload_url(release, path.name)
    result = http.request_bytes("POST", url, headers=headers, data=content)
    if isinstance(result, Err):
        return Err(_github_error(result.error, action=f"upload asset {path.name}"))
    return Ok(None)
