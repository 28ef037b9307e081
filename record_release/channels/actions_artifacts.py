"""GitHub Actions artifact service (v4) as a blob channel.

Each bundle is one workflow artifact holding a zip archive. The service is a
Twirp JSON API on ``ACTIONS_RESULTS_URL``:

- CreateArtifact -> signed blob upload URL
- PUT the zip to that URL
- FinalizeArtifact with size and sha256
- ListArtifacts / GetSignedArtifactURL to read back

Requests are scoped by the run and job backend ids carried in the ``scp``
claim of ``ACTIONS_RUNTIME_TOKEN``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import io
import json
import zipfile
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from record_release.channels.blob import BlobBundle, member_name
from record_release.clients.http import HttpClient, HttpError
from record_release.core.result import Err, Ok, Result
from record_release.core.structured import as_obj_list, as_str_dict, get_id, get_str
from record_release.release.errors import ReleaseError

__all__ = ["ActionsArtifactChannel", "BackendIds", "parse_backend_ids"]

_SERVICE = "twirp/github.actions.results.api.v1.ArtifactService"
_ARTIFACT_VERSION = 4


@dataclass(frozen=True, slots=True)
class BackendIds:
    workflow_run_backend_id: str
    workflow_job_run_backend_id: str

    def as_payload(self) -> dict[str, str]:
        return {
            "workflow_run_backend_id": self.workflow_run_backend_id,
            "workflow_job_run_backend_id": self.workflow_job_run_backend_id,
        }


def _blob_error(message: str, hint: str | None = None) -> ReleaseError:
    return ReleaseError(kind="blob_failed", message=message, hint=hint)


def parse_backend_ids(runtime_token: str) -> Result[BackendIds, ReleaseError]:
    """Extract backend ids from the runtime token's ``Actions.Results`` scope."""
    parts = runtime_token.split(".")
    if len(parts) != 3:
        return Err(_blob_error("ACTIONS_RUNTIME_TOKEN is not a JWT"))

    payload_b64 = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = as_str_dict(json.loads(base64.urlsafe_b64decode(payload_b64)))
    except (binascii.Error, ValueError):
        return Err(_blob_error("ACTIONS_RUNTIME_TOKEN payload is not valid JSON"))
    if claims is None:
        return Err(_blob_error("ACTIONS_RUNTIME_TOKEN payload is not an object"))

    scopes = get_str(claims, "scp") or ""
    for scope in scopes.split(" "):
        fields = scope.split(":")
        if len(fields) == 3 and fields[0] == "Actions.Results":
            return Ok(BackendIds(workflow_run_backend_id=fields[1], workflow_job_run_backend_id=fields[2]))

    return Err(_blob_error("ACTIONS_RUNTIME_TOKEN has no Actions.Results scope"))


def _zip_members(files: Sequence[Path], root: Path) -> Result[bytes, ReleaseError]:
    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for path in files:
                archive.write(path, arcname=member_name(path, root))
    except OSError as e:
        return Err(_blob_error(f"failed to archive {e.filename}: {e.strerror}"))
    return Ok(buffer.getvalue())


def _safe_extract(archive: zipfile.ZipFile, dest: Path) -> None:
    root = dest.resolve()
    for info in archive.infolist():
        target = (dest / info.filename).resolve()
        if not target.is_relative_to(root):
            raise ValueError(f"unsafe path in archive: {info.filename}")
    archive.extractall(dest)


def _registered_at(created_at: str | None) -> datetime:
    """Parse an RFC 3339 timestamp; missing or malformed ones sort first."""
    if not created_at:
        return datetime.min.replace(tzinfo=UTC)
    try:
        parsed = datetime.fromisoformat(created_at)
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class ActionsArtifactChannel:
    """Blob channel backed by the workflow run's artifacts."""

    def __init__(
        self,
        http: HttpClient,
        *,
        results_url: str,
        runtime_token: str,
        backend: BackendIds,
    ) -> None:
        self._http = http
        self._base = f"{results_url.rstrip('/')}/{_SERVICE}"
        self._token = runtime_token
        self._backend = backend

    @classmethod
    def from_runtime(
        cls, http: HttpClient, *, results_url: str, runtime_token: str
    ) -> Result[ActionsArtifactChannel, ReleaseError]:
        backend = parse_backend_ids(runtime_token)
        if isinstance(backend, Err):
            return backend
        return Ok(cls(http, results_url=results_url, runtime_token=runtime_token, backend=backend.value))

    def _call(self, method: str, body: dict[str, object]) -> Result[dict[str, Any], ReleaseError]:
        payload: dict[str, object] = {**self._backend.as_payload(), **body}
        result = self._http.request_json(
            "POST",
            f"{self._base}/{method}",
            headers={"Authorization": f"Bearer {self._token}"},
            payload=payload,
        )
        if isinstance(result, Err):
            return Err(_twirp_error(method, result.error))
        return Ok(result.value)

    def upload(self, name: str, files: Sequence[Path], root: Path) -> Result[BlobBundle, ReleaseError]:
        archive = _zip_members(files, root)
        if isinstance(archive, Err):
            return archive
        content = archive.value

        created = self._call("CreateArtifact", {"name": name, "version": _ARTIFACT_VERSION})
        if isinstance(created, Err):
            return created
        upload_url = get_str(created.value, "signed_upload_url") or get_str(
            created.value, "signedUploadUrl"
        )
        if created.value.get("ok") is False or upload_url is None:
            return Err(_blob_error(f"artifact service refused bundle {name}"))

        put = self._http.request_bytes(
            "PUT",
            upload_url,
            headers={"x-ms-blob-type": "BlockBlob", "Content-Type": "application/zip"},
            data=content,
        )
        if isinstance(put, Err):
            return Err(_blob_error(f"failed to upload bundle {name}: {put.error.message}"))

        finalized = self._call(
            "FinalizeArtifact",
            {
                "name": name,
                "size": str(len(content)),
                "hash": f"sha256:{hashlib.sha256(content).hexdigest()}",
            },
        )
        if isinstance(finalized, Err):
            return finalized
        artifact_id = get_id(finalized.value, "artifact_id") or get_id(finalized.value, "artifactId")
        if finalized.value.get("ok") is False or artifact_id is None:
            return Err(_blob_error(f"artifact service did not finalize bundle {name}"))

        return Ok(BlobBundle(id=artifact_id, name=name, size=len(content)))

    def list(self) -> Result[list[BlobBundle], ReleaseError]:
        listed = self._call("ListArtifacts", {})
        if isinstance(listed, Err):
            return listed

        bundles: list[BlobBundle] = []
        for item in as_obj_list(listed.value.get("artifacts")) or []:
            data = as_str_dict(item)
            if data is None:
                continue
            name = get_str(data, "name")
            artifact_id = get_id(data, "database_id") or get_id(data, "databaseId")
            if name is None or artifact_id is None:
                continue
            size_raw = get_id(data, "size")
            bundles.append(
                BlobBundle(
                    id=artifact_id,
                    name=name,
                    size=int(size_raw) if size_raw and size_raw.isdigit() else 0,
                    created_at=get_str(data, "created_at") or get_str(data, "createdAt"),
                )
            )

        # Registration order: created_at, then database id.
        bundles.sort(key=lambda b: (_registered_at(b.created_at), int(b.id) if b.id.isdigit() else 0))
        return Ok(bundles)

    def download(self, bundle: BlobBundle, dest: Path) -> Result[Path, ReleaseError]:
        signed = self._call("GetSignedArtifactURL", {"name": bundle.name})
        if isinstance(signed, Err):
            return signed
        url = get_str(signed.value, "signed_url") or get_str(signed.value, "signedUrl")
        if url is None:
            return Err(_blob_error(f"no download URL for bundle {bundle.name}"))

        fetched = self._http.request_bytes("GET", url)
        if isinstance(fetched, Err):
            return Err(_blob_error(f"failed to download bundle {bundle.name}: {fetched.error.message}"))

        try:
            dest.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(io.BytesIO(fetched.value)) as archive:
                _safe_extract(archive, dest)
        except (zipfile.BadZipFile, ValueError, OSError) as e:
            return Err(_blob_error(f"failed to extract bundle {bundle.name}: {e}"))
        return Ok(dest)


def _twirp_error(method: str, error: HttpError) -> ReleaseError:
    body = error.json_body()
    detail = get_str(body, "msg") if body is not None else None
    return _blob_error(f"artifact service {method} failed: {detail or error.message}", hint=error.url)
