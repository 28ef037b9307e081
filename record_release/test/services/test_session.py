from pathlib import Path

from record_release.channels.blob import DirectoryBlobChannel, MemoryBlobChannel
from record_release.core.result import Err, Ok
from record_release.output.console import MockConsole
from record_release.release.model import Session
from record_release.services.session import (
    SESSION_BUNDLE_NAME,
    publish_session,
    resume_session,
    session_from_dict,
    session_to_dict,
)

FULL = Session(
    environment="staging",
    version="2.0.0",
    application_name="web",
    api_url="https://ops.example.com",
    release_prefix="web",
    skip_github_release=False,
    body="## Notes\n\n- first\n",
    draft=True,
    prerelease=True,
    commit_hash="abc123",
    commit_message="feat: x",
    deployed_by="ci",
)
MINIMAL = Session(environment="production", version="1.0.0", application_name="api", api_url="https://ops")
VERBATIM = Session(
    environment="development",
    version="0.1.0",
    application_name="web",
    api_url="https://ops",
    release_prefix="",
    body="",
    commit_message="  fix: padded  ",
    deployed_by=" ci-bot ",
)


def test_to_dict_uses_wire_names_and_omits_absent() -> None:
    assert session_to_dict(MINIMAL) == {
        "environment": "production",
        "version": "1.0.0",
        "applicationName": "api",
        "apiUrl": "https://ops",
        "skipGithubRelease": False,
        "draft": False,
        "prerelease": False,
    }


def test_dict_roundtrip() -> None:
    for session in (FULL, MINIMAL, VERBATIM):
        assert session_from_dict(session_to_dict(session)) == Ok(session)


def test_from_dict_requires_core_fields() -> None:
    result = session_from_dict({"environment": "staging", "version": "1.0.0"})
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"


def test_from_dict_rejects_unknown_environment() -> None:
    data = session_to_dict(MINIMAL) | {"environment": "qa"}
    assert isinstance(session_from_dict(data), Err)


def test_publish_then_resume(tmp_path: Path) -> None:
    """A session survives the trip through blob storage unchanged."""
    blob = DirectoryBlobChannel(tmp_path / "blobs")
    published = publish_session(blob, FULL, workdir=tmp_path / "init")
    assert isinstance(published, Ok)
    assert published.value.name == SESSION_BUNDLE_NAME

    console = MockConsole()
    resumed = resume_session(blob, console, workdir=tmp_path / "finalize")

    assert resumed == FULL
    assert console.find("Session loaded: version=2.0.0, environment=staging")


def test_publish_then_resume_keeps_optional_strings_verbatim(tmp_path: Path) -> None:
    blob = MemoryBlobChannel()
    assert isinstance(publish_session(blob, VERBATIM, workdir=tmp_path / "init"), Ok)

    resumed = resume_session(blob, MockConsole(), workdir=tmp_path / "finalize")

    assert resumed == VERBATIM
    assert resumed.release_prefix == ""
    assert resumed.deployed_by == " ci-bot "


def test_publish_cleans_staging(tmp_path: Path) -> None:
    workdir = tmp_path / "init"
    publish_session(MemoryBlobChannel(), MINIMAL, workdir=workdir)
    assert list(workdir.iterdir()) == []


def test_resume_without_session(tmp_path: Path) -> None:
    console = MockConsole()
    assert resume_session(MemoryBlobChannel(), console, workdir=tmp_path) is None
    assert not console.has_warning()


def test_resume_list_failure_is_warning(tmp_path: Path) -> None:
    console = MockConsole()
    assert resume_session(MemoryBlobChannel(fail_list=True), console, workdir=tmp_path) is None
    assert console.has_warning()


def test_resume_download_failure_is_warning(tmp_path: Path) -> None:
    blob = MemoryBlobChannel(failing_downloads={SESSION_BUNDLE_NAME})
    publish_session(blob, MINIMAL, workdir=tmp_path)
    console = MockConsole()

    assert resume_session(blob, console, workdir=tmp_path) is None
    assert console.warnings()[0].startswith("warning: Failed to download session")


def test_resume_bundle_without_session_file(tmp_path: Path) -> None:
    other = tmp_path / "other.json"
    other.write_text("{}", encoding="utf-8")
    blob = MemoryBlobChannel()
    blob.upload(SESSION_BUNDLE_NAME, [other], tmp_path)
    console = MockConsole()

    assert resume_session(blob, console, workdir=tmp_path / "w") is None
    assert console.warnings() == ["warning: Session file not found in bundle"]


def test_resume_picks_latest_session(tmp_path: Path) -> None:
    blob = MemoryBlobChannel()
    publish_session(blob, MINIMAL, workdir=tmp_path)
    publish_session(blob, FULL, workdir=tmp_path)

    assert resume_session(blob, MockConsole(), workdir=tmp_path / "w") == FULL
