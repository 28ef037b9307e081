"""Tests for the main-to-post hand-off."""

from pathlib import Path

import pytest

from record_release.channels.run_state import FileRunState, MemoryRunState
from record_release.core.result import Err, Ok
from record_release.release.model import Session
from record_release.services.handoff import (
    POST_TASK_KEY,
    PostTask,
    PublishSessionTask,
    RecordReleaseTask,
    UploadArtifactsTask,
    clear_post_task,
    load_post_task,
    save_post_task,
)

SESSION = Session(
    environment="production",
    version="1.2.4",
    application_name="web",
    api_url="https://ops",
    body="notes\n",
    commit_hash="abc",
)


@pytest.mark.parametrize(
    "task",
    [
        UploadArtifactsTask(artifacts="dist/*.zip\ndist/*.tar.gz"),
        PublishSessionTask(session=SESSION),
        PublishSessionTask(session=SESSION, artifacts="dist/*"),
        RecordReleaseTask(session=SESSION, token="t"),
        RecordReleaseTask(session=SESSION, token="t", github_token="gh", artifacts="dist/*"),
    ],
)
def test_task_survives_the_hand_off(task: PostTask) -> None:
    state = MemoryRunState()
    assert save_post_task(state, task) == Ok(None)
    assert load_post_task(state) == Ok(task)


def test_nothing_saved() -> None:
    assert load_post_task(MemoryRunState()) == Ok(None)


def test_clear_forgets_previous_task(tmp_path: Path) -> None:
    state = FileRunState(tmp_path / "state.json")
    save_post_task(state, UploadArtifactsTask(artifacts="dist/*"))

    assert clear_post_task(state) == Ok(None)
    assert load_post_task(FileRunState(tmp_path / "state.json")) == Ok(None)


@pytest.mark.parametrize(
    "raw",
    [
        "{broken",
        "[]",
        '{"task": "launch-rockets"}',
        '{"task": "upload-artifacts"}',
        '{"task": "record-release", "session": {"environment": "production"}, "token": "t"}',
    ],
)
def test_invalid_state(raw: str) -> None:
    result = load_post_task(MemoryRunState(values={POST_TASK_KEY: raw}))
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"
