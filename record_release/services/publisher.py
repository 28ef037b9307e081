"""Best-effort GitHub release creation.

By the time this runs the ledger write has succeeded, so failures here are
warnings and never fail the step.
"""

from __future__ import annotations

from pathlib import Path

from record_release.clients.github import GithubRepo, create_release, upload_release_asset
from record_release.clients.http import HttpClient
from record_release.core.result import Err
from record_release.output.console import ConsoleProtocol
from record_release.release.model import ReleaseOptions

__all__ = ["publish_release"]


def publish_release(
    http: HttpClient,
    console: ConsoleProtocol,
    *,
    repo: GithubRepo | None,
    token: str | None,
    tag: str,
    options: ReleaseOptions,
    assets: list[Path],
) -> bool:
    """Create the release for tag and attach assets one by one.

    Returns True when the release and every asset were published. A failed
    upload stops the remaining uploads; the release and assets already
    uploaded are left in place.
    """
    if options.skip_github_release:
        console.debug("GitHub release skipped (skip-github-release)")
        return False
    if not token:
        console.debug("GitHub release skipped (no github-token)")
        return False
    if repo is None:
        console.warning("GitHub release skipped: repository is unknown (GITHUB_REPOSITORY)")
        return False

    console.info(f"Creating GitHub release: {tag}")
    created = create_release(http, repo, token=token, tag=tag, options=options)
    if isinstance(created, Err):
        console.warning(f"Failed to create GitHub release: {created.error.message}")
        return False

    release = created.value
    console.success(f"GitHub release created: {release.html_url}")

    for path in assets:
        console.info(f"Uploading artifact: {path.name}")
        uploaded = upload_release_asset(http, release, token=token, path=path)
        if isinstance(uploaded, Err):
            console.warning(f"Failed to upload release asset {path.name}: {uploaded.error.message}")
            return False

    return True
