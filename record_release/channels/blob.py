"""Run-scoped blob storage shared between jobs.

A bundle is a named set of files uploaded by one job and downloadable by any
later job of the same workflow run. This module provides:
- BlobChannel: Protocol for upload/list/download (injectable for tests)
- DirectoryBlobChannel: bundles stored under a shared directory
- MemoryBlobChannel: in-memory bundles for tests
The GitHub Actions artifact service implementation lives in
``actions_artifacts``.
"""

from __future__ import annotations

import json
import shutil
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from record_release.core.result import Err, Ok, Result
from record_release.core.structured import as_str_dict, get_str
from record_release.platform.files import atomic_write_text
from record_release.release.errors import ReleaseError

__all__ = [
    "BlobBundle",
    "BlobChannel",
    "DirectoryBlobChannel",
    "MemoryBlobChannel",
    "member_name",
]


@dataclass(frozen=True, slots=True)
class BlobBundle:
    """A listed bundle.

    Attributes:
        id: Storage-specific identifier used for download
        name: Bundle name given at upload
        size: Stored size in bytes
        created_at: ISO timestamp, when the storage reports one
    """

    id: str
    name: str
    size: int = 0
    created_at: str | None = None


@runtime_checkable
class BlobChannel(Protocol):
    """Protocol for run-scoped bundle storage."""

    def upload(self, name: str, files: Sequence[Path], root: Path) -> Result[BlobBundle, ReleaseError]:
        """Upload files as one bundle; members are named relative to root."""
        ...

    def list(self) -> Result[list[BlobBundle], ReleaseError]:
        """List bundles of the current run, oldest registration first."""
        ...

    def download(self, bundle: BlobBundle, dest: Path) -> Result[Path, ReleaseError]:
        """Extract a bundle's files under dest and return dest."""
        ...


def member_name(path: Path, root: Path) -> str:
    """Name of a file inside a bundle: relative to root, else its basename."""
    try:
        rel = path.resolve().relative_to(root.resolve())
    except ValueError:
        return path.name
    return rel.as_posix()


def _blob_error(message: str, hint: str | None = None) -> ReleaseError:
    return ReleaseError(kind="blob_failed", message=message, hint=hint)


class DirectoryBlobChannel:
    """Bundles stored as sub-directories of a shared directory.

    Layout::

        <root>/<created_ns>-<name>/bundle.json
        <root>/<created_ns>-<name>/files/<member>

    Works across jobs whenever the directory is shared (self-hosted runners,
    network mounts) and for local runs.
    """

    METADATA_FILE = "bundle.json"
    FILES_DIR = "files"

    def __init__(self, root: Path) -> None:
        self.root = root

    def upload(self, name: str, files: Sequence[Path], root: Path) -> Result[BlobBundle, ReleaseError]:
        created_ns = time.time_ns()
        while (self.root / f"{created_ns}-{name}").exists():
            created_ns += 1
        bundle_dir = self.root / f"{created_ns}-{name}"
        files_dir = bundle_dir / self.FILES_DIR
        size = 0
        try:
            files_dir.mkdir(parents=True, exist_ok=False)
            for path in files:
                target = files_dir / member_name(path, root)
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(path, target)
                size += target.stat().st_size
            created_at = datetime.fromtimestamp(created_ns / 1e9, tz=UTC).isoformat()
            metadata = {"name": name, "createdNs": created_ns, "createdAt": created_at, "size": size}
            # Written last: a bundle without metadata is an incomplete upload.
            atomic_write_text(bundle_dir / self.METADATA_FILE, json.dumps(metadata) + "\n")
        except OSError as e:
            return Err(_blob_error(f"failed to store bundle {name}: {e}", hint=str(bundle_dir)))

        return Ok(BlobBundle(id=bundle_dir.name, name=name, size=size, created_at=created_at))

    def list(self) -> Result[list[BlobBundle], ReleaseError]:
        if not self.root.is_dir():
            return Ok([])

        entries: list[tuple[int, str, BlobBundle]] = []
        try:
            children = sorted(self.root.iterdir())
        except OSError as e:
            return Err(_blob_error(f"failed to list bundles: {e}", hint=str(self.root)))

        for child in children:
            meta_path = child / self.METADATA_FILE
            if not meta_path.is_file():
                continue
            try:
                meta = as_str_dict(json.loads(meta_path.read_text(encoding="utf-8")))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError):
                continue
            if meta is None:
                continue
            name = get_str(meta, "name")
            created_ns = meta.get("createdNs")
            size = meta.get("size")
            if name is None or not isinstance(created_ns, int):
                continue
            bundle = BlobBundle(
                id=child.name,
                name=name,
                size=size if isinstance(size, int) else 0,
                created_at=get_str(meta, "createdAt"),
            )
            entries.append((created_ns, child.name, bundle))

        entries.sort(key=lambda e: (e[0], e[1]))
        return Ok([bundle for _, _, bundle in entries])

    def download(self, bundle: BlobBundle, dest: Path) -> Result[Path, ReleaseError]:
        files_dir = self.root / bundle.id / self.FILES_DIR
        if not files_dir.is_dir():
            return Err(_blob_error(f"bundle not found: {bundle.name}", hint=str(files_dir)))
        try:
            shutil.copytree(files_dir, dest, dirs_exist_ok=True)
        except OSError as e:
            return Err(_blob_error(f"failed to download bundle {bundle.name}: {e}"))
        return Ok(dest)


@dataclass
class _StoredBundle:
    bundle: BlobBundle
    members: dict[str, bytes]


def _empty_store() -> list[_StoredBundle]:
    return []


def _empty_names() -> set[str]:
    return set()


@dataclass
class MemoryBlobChannel:
    """In-memory bundles for testing.

    Bundles uploaded through one instance are visible to every job that
    shares the instance, which stands in for one workflow run.
    """

    bundles: list[_StoredBundle] = field(default_factory=_empty_store)
    failing_downloads: set[str] = field(default_factory=_empty_names)
    fail_list: bool = False

    def upload(self, name: str, files: Sequence[Path], root: Path) -> Result[BlobBundle, ReleaseError]:
        members: dict[str, bytes] = {}
        try:
            for path in files:
                members[member_name(path, root)] = path.read_bytes()
        except OSError as e:
            return Err(_blob_error(f"failed to read {e.filename}: {e.strerror}"))

        bundle = BlobBundle(
            id=str(len(self.bundles) + 1),
            name=name,
            size=sum(len(v) for v in members.values()),
        )
        self.bundles.append(_StoredBundle(bundle=bundle, members=members))
        return Ok(bundle)

    def list(self) -> Result[list[BlobBundle], ReleaseError]:
        if self.fail_list:
            return Err(_blob_error("listing disabled (mock)"))
        return Ok([stored.bundle for stored in self.bundles])

    def download(self, bundle: BlobBundle, dest: Path) -> Result[Path, ReleaseError]:
        if bundle.name in self.failing_downloads:
            return Err(_blob_error(f"download failed (mock): {bundle.name}"))
        for stored in self.bundles:
            if stored.bundle.id == bundle.id:
                for member, content in stored.members.items():
                    target = dest / member
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(content)
                dest.mkdir(parents=True, exist_ok=True)
                return Ok(dest)
        return Err(_blob_error(f"bundle not found: {bundle.name}"))

    def names(self) -> list[str]:
        return [stored.bundle.name for stored in self.bundles]
