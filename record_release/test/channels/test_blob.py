"""Tests for channels/blob.py."""

from pathlib import Path

import pytest

from record_release.channels.blob import (
    BlobBundle,
    BlobChannel,
    DirectoryBlobChannel,
    MemoryBlobChannel,
    member_name,
)
from record_release.core.result import Err, Ok


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "ws"
    (root / "dist" / "linux").mkdir(parents=True)
    (root / "dist" / "app.zip").write_bytes(b"zip")
    (root / "dist" / "linux" / "app.tar.gz").write_bytes(b"tar")
    return root


def test_member_name(workspace: Path, tmp_path: Path) -> None:
    assert member_name(workspace / "dist" / "linux" / "app.tar.gz", workspace) == "dist/linux/app.tar.gz"
    outside = tmp_path / "elsewhere.txt"
    assert member_name(outside, workspace) == "elsewhere.txt"


class TestDirectoryBlobChannel:
    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(DirectoryBlobChannel(tmp_path), BlobChannel)

    def test_upload_list_download(self, tmp_path: Path, workspace: Path) -> None:
        channel = DirectoryBlobChannel(tmp_path / "blobs")
        files = [workspace / "dist" / "app.zip", workspace / "dist" / "linux" / "app.tar.gz"]

        uploaded = channel.upload("record-release-artifacts-a", files, workspace)
        assert isinstance(uploaded, Ok)
        assert uploaded.value.size == 6

        listed = channel.list()
        assert isinstance(listed, Ok)
        assert [b.name for b in listed.value] == ["record-release-artifacts-a"]

        dest = tmp_path / "out"
        assert channel.download(listed.value[0], dest) == Ok(dest)
        assert (dest / "dist" / "app.zip").read_bytes() == b"zip"
        assert (dest / "dist" / "linux" / "app.tar.gz").read_bytes() == b"tar"

    def test_list_in_registration_order(self, tmp_path: Path, workspace: Path) -> None:
        channel = DirectoryBlobChannel(tmp_path / "blobs")
        for name in ("first", "second", "third"):
            assert isinstance(channel.upload(name, [workspace / "dist" / "app.zip"], workspace), Ok)

        listed = channel.list()
        assert isinstance(listed, Ok)
        assert [b.name for b in listed.value] == ["first", "second", "third"]

    def test_same_name_twice_lists_both(self, tmp_path: Path, workspace: Path) -> None:
        channel = DirectoryBlobChannel(tmp_path / "blobs")
        channel.upload("record-release-session", [workspace / "dist" / "app.zip"], workspace)
        channel.upload("record-release-session", [workspace / "dist" / "app.zip"], workspace)

        listed = channel.list()
        assert isinstance(listed, Ok)
        assert len(listed.value) == 2

    def test_list_missing_root(self, tmp_path: Path) -> None:
        assert DirectoryBlobChannel(tmp_path / "none").list() == Ok([])

    def test_incomplete_bundle_is_ignored(self, tmp_path: Path) -> None:
        root = tmp_path / "blobs"
        (root / "123-partial" / "files").mkdir(parents=True)
        assert DirectoryBlobChannel(root).list() == Ok([])

    def test_upload_missing_file(self, tmp_path: Path, workspace: Path) -> None:
        channel = DirectoryBlobChannel(tmp_path / "blobs")
        result = channel.upload("x", [workspace / "missing.zip"], workspace)
        assert isinstance(result, Err)
        assert result.error.kind == "blob_failed"

    def test_download_unknown_bundle(self, tmp_path: Path) -> None:
        channel = DirectoryBlobChannel(tmp_path / "blobs")
        result = channel.download(BlobBundle(id="nope", name="nope"), tmp_path / "out")
        assert isinstance(result, Err)


class TestMemoryBlobChannel:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryBlobChannel(), BlobChannel)

    def test_roundtrip(self, tmp_path: Path, workspace: Path) -> None:
        channel = MemoryBlobChannel()
        channel.upload("a", [workspace / "dist" / "app.zip"], workspace)

        listed = channel.list()
        assert isinstance(listed, Ok)
        dest = tmp_path / "out"
        assert channel.download(listed.value[0], dest) == Ok(dest)
        assert (dest / "dist" / "app.zip").read_bytes() == b"zip"
        assert channel.names() == ["a"]

    def test_failure_switches(self, tmp_path: Path, workspace: Path) -> None:
        channel = MemoryBlobChannel(failing_downloads={"a"})
        uploaded = channel.upload("a", [workspace / "dist" / "app.zip"], workspace)
        assert isinstance(uploaded, Ok)
        assert isinstance(channel.download(uploaded.value, tmp_path / "out"), Err)

        channel.fail_list = True
        assert isinstance(channel.list(), Err)
