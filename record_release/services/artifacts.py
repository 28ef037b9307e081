"""Artifact aggregation across contributing jobs.

Every contributing job uploads its own bundle named with a fixed prefix and a
random suffix, so parallel build jobs never overwrite each other without any
locking. The finalizing job downloads every bundle carrying the prefix.
"""

from __future__ import annotations

import glob
import shutil
import uuid
from collections.abc import Callable
from pathlib import Path

from record_release.channels.blob import BlobBundle, BlobChannel
from record_release.core.result import Err, Ok, Result
from record_release.output.console import ConsoleProtocol
from record_release.release.errors import ReleaseError

__all__ = [
    "ARTIFACT_BUNDLE_PREFIX",
    "collect_local",
    "collect_remote",
    "is_artifact_bundle",
    "new_bundle_name",
    "publish_artifacts",
    "split_patterns",
]

ARTIFACT_BUNDLE_PREFIX = "record-release-artifacts"


def split_patterns(text: str | None) -> list[str]:
    """Split a newline-separated pattern list, dropping blank lines."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def _expand(pattern: str, root: Path) -> list[Path]:
    base = pattern if Path(pattern).is_absolute() else str(root / pattern)
    return [Path(p) for p in sorted(glob.glob(base, recursive=True)) if Path(p).is_file()]


def collect_local(patterns: list[str], console: ConsoleProtocol, *, root: Path) -> list[Path]:
    """Expand each pattern independently and concatenate the matches.

    A pattern matching nothing is a warning. Files matched by several
    patterns are listed once per pattern.
    """
    files: list[Path] = []
    for pattern in patterns:
        matches = _expand(pattern, root)
        if not matches:
            console.warning(f"No files matched pattern: {pattern}")
            continue
        files.extend(matches)
    return files


def new_bundle_name(suffix: Callable[[], str] = lambda: uuid.uuid4().hex) -> str:
    return f"{ARTIFACT_BUNDLE_PREFIX}-{suffix()}"


def is_artifact_bundle(name: str) -> bool:
    # The bare prefix is what older versions uploaded under.
    return name == ARTIFACT_BUNDLE_PREFIX or name.startswith(f"{ARTIFACT_BUNDLE_PREFIX}-")


def publish_artifacts(
    blob: BlobChannel,
    files: list[Path],
    console: ConsoleProtocol,
    *,
    root: Path,
) -> Result[BlobBundle | None, ReleaseError]:
    """Upload files as a new bundle; an empty list uploads nothing."""
    if not files:
        console.warning("No artifacts found to upload")
        return Ok(None)

    name = new_bundle_name()
    console.info(f"Uploading {len(files)} artifact(s) to storage as {name}...")
    uploaded = blob.upload(name, files, root)
    if isinstance(uploaded, Err):
        return uploaded

    console.success("Artifacts uploaded successfully")
    for path in files:
        console.info(f"  - {path.name}")
    return Ok(uploaded.value)


def collect_remote(blob: BlobChannel, console: ConsoleProtocol, *, dest: Path) -> list[Path]:
    """Download every artifact bundle of the run and list the files received.

    Each bundle lands in its own sub-directory. Listing or download failures
    are warnings; whatever could be fetched is returned.
    """
    listed = blob.list()
    if isinstance(listed, Err):
        console.warning(f"Failed to list stored artifacts: {listed.error.message}")
        return []

    bundles = [bundle for bundle in listed.value if is_artifact_bundle(bundle.name)]
    if not bundles:
        console.debug("No stored artifacts found")
        return []

    console.info(f"Downloading {len(bundles)} stored artifact bundle(s) from previous jobs...")
    if dest.exists():
        shutil.rmtree(dest, ignore_errors=True)

    files: list[Path] = []
    for index, bundle in enumerate(bundles):
        target = dest / f"{index:03d}-{bundle.name}"
        downloaded = blob.download(bundle, target)
        if isinstance(downloaded, Err):
            console.warning(f"Skipping bundle {bundle.name}: {downloaded.error.message}")
            continue
        files.extend(sorted(p for p in downloaded.value.rglob("*") if p.is_file()))

    console.info(f"Downloaded {len(files)} artifact(s)")
    return files
