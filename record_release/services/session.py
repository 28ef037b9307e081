"""Session hand-off between an init job and a finalize job.

The session is published as a single ``session.json`` inside a bundle with a
fixed name. Only one init job per transaction is expected; if the bundle is
published again the most recently registered one wins.
"""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import cast

from record_release.channels.blob import BlobBundle, BlobChannel
from record_release.core.result import Err, Ok, Result
from record_release.core.structured import StrDict, as_str_dict, get_bool, get_exact_str, get_str
from record_release.output.console import ConsoleProtocol
from record_release.release.errors import ReleaseError
from record_release.release.model import ENVIRONMENTS, Environment, Session

__all__ = [
    "SESSION_BUNDLE_NAME",
    "SESSION_FILE_NAME",
    "publish_session",
    "resume_session",
    "session_from_dict",
    "session_to_dict",
]

SESSION_BUNDLE_NAME = "record-release-session"
SESSION_FILE_NAME = "session.json"


def session_to_dict(session: Session) -> StrDict:
    data: StrDict = {
        "environment": session.environment,
        "version": session.version,
        "applicationName": session.application_name,
        "apiUrl": session.api_url,
        "skipGithubRelease": session.skip_github_release,
        "draft": session.draft,
        "prerelease": session.prerelease,
    }
    optional = {
        "releasePrefix": session.release_prefix,
        "body": session.body,
        "commitHash": session.commit_hash,
        "commitMessage": session.commit_message,
        "deployedBy": session.deployed_by,
    }
    data.update({k: v for k, v in optional.items() if v is not None})
    return data


def session_from_dict(data: StrDict) -> Result[Session, ReleaseError]:
    environment = get_str(data, "environment")
    version = get_str(data, "version")
    application_name = get_str(data, "applicationName")
    api_url = get_str(data, "apiUrl")
    if environment is None or version is None or application_name is None or api_url is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="session requires environment, version, applicationName and apiUrl",
            )
        )
    if environment not in ENVIRONMENTS:
        return Err(ReleaseError(kind="invalid_input", message=f"invalid session environment: {environment}"))

    return Ok(
        Session(
            environment=cast(Environment, environment),
            version=version,
            application_name=application_name,
            api_url=api_url,
            release_prefix=get_exact_str(data, "releasePrefix"),
            skip_github_release=get_bool(data, "skipGithubRelease"),
            body=get_exact_str(data, "body"),
            draft=get_bool(data, "draft"),
            prerelease=get_bool(data, "prerelease"),
            commit_hash=get_exact_str(data, "commitHash"),
            commit_message=get_exact_str(data, "commitMessage"),
            deployed_by=get_exact_str(data, "deployedBy"),
        )
    )


def publish_session(
    blob: BlobChannel,
    session: Session,
    *,
    workdir: Path,
) -> Result[BlobBundle, ReleaseError]:
    """Upload the session under the fixed bundle name."""
    staging = Path(tempfile.mkdtemp(prefix="record-release-session-", dir=_ensure_dir(workdir)))
    try:
        path = staging / SESSION_FILE_NAME
        try:
            path.write_text(json.dumps(session_to_dict(session), indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            return Err(ReleaseError(kind="io_error", message=f"failed to write session: {e}", hint=str(path)))
        return blob.upload(SESSION_BUNDLE_NAME, [path], staging)
    finally:
        shutil.rmtree(staging, ignore_errors=True)


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def resume_session(
    blob: BlobChannel,
    console: ConsoleProtocol,
    *,
    workdir: Path,
) -> Session | None:
    """Load the published session.

    Returns None when no session bundle exists or it cannot be read; deciding
    whether that is fatal is up to the caller.
    """
    listed = blob.list()
    if isinstance(listed, Err):
        console.warning(f"Failed to list bundles: {listed.error.message}")
        return None

    matches = [bundle for bundle in listed.value if bundle.name == SESSION_BUNDLE_NAME]
    if not matches:
        console.debug("No session bundle found")
        return None

    console.info("Downloading session from previous job...")
    dest = workdir / SESSION_BUNDLE_NAME
    if dest.exists():
        shutil.rmtree(dest, ignore_errors=True)

    downloaded = blob.download(matches[-1], dest)
    if isinstance(downloaded, Err):
        console.warning(f"Failed to download session: {downloaded.error.message}")
        return None

    session_file = downloaded.value / SESSION_FILE_NAME
    try:
        obj: object = json.loads(session_file.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.warning("Session file not found in bundle")
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        console.warning(f"Failed to read session: {e}")
        return None

    data = as_str_dict(obj)
    if data is None:
        console.warning("Failed to read session: not a JSON object")
        return None

    parsed = session_from_dict(data)
    if isinstance(parsed, Err):
        console.warning(f"Failed to read session: {parsed.error.message}")
        return None

    session = parsed.value
    console.info(f"Session loaded: version={session.version}, environment={session.environment}")
    return session
