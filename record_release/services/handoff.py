"""Typed hand-off from a step's main phase to its post phase.

The main phase saves at most one task; the post phase performs it. The task
is stored as JSON under a single run-state key with a ``task`` discriminator.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import ClassVar, TypeAlias

from record_release.channels.run_state import RunStateChannel
from record_release.core.result import Err, Ok, Result
from record_release.core.structured import StrDict, as_str_dict, get_raw_str, get_str, get_table
from record_release.release.errors import ReleaseError
from record_release.release.model import Session
from record_release.services.session import session_from_dict, session_to_dict

__all__ = [
    "POST_TASK_KEY",
    "PostTask",
    "PublishSessionTask",
    "RecordReleaseTask",
    "UploadArtifactsTask",
    "clear_post_task",
    "load_post_task",
    "save_post_task",
]

POST_TASK_KEY = "post-task"


@dataclass(frozen=True, slots=True)
class UploadArtifactsTask:
    kind: ClassVar[str] = "upload-artifacts"
    artifacts: str


@dataclass(frozen=True, slots=True)
class PublishSessionTask:
    kind: ClassVar[str] = "publish-session"
    session: Session
    artifacts: str | None = None


@dataclass(frozen=True, slots=True)
class RecordReleaseTask:
    kind: ClassVar[str] = "record-release"
    session: Session
    token: str
    github_token: str | None = None
    artifacts: str | None = None


PostTask: TypeAlias = UploadArtifactsTask | PublishSessionTask | RecordReleaseTask


def _to_dict(task: PostTask) -> StrDict:
    data: StrDict = {"task": task.kind}
    match task:
        case UploadArtifactsTask(artifacts=artifacts):
            data["artifacts"] = artifacts
        case PublishSessionTask(session=session, artifacts=artifacts):
            data["session"] = session_to_dict(session)
            data["artifacts"] = artifacts
        case RecordReleaseTask(session=session, token=token, github_token=github_token, artifacts=artifacts):
            data["session"] = session_to_dict(session)
            data["token"] = token
            data["githubToken"] = github_token
            data["artifacts"] = artifacts
    return data


def _invalid(message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="invalid_input", message=f"invalid post state: {message}"))


def _from_dict(data: StrDict) -> Result[PostTask, ReleaseError]:
    kind = get_str(data, "task")
    artifacts = get_raw_str(data, "artifacts")

    if kind == UploadArtifactsTask.kind:
        if artifacts is None:
            return _invalid("upload task without artifacts")
        return Ok(UploadArtifactsTask(artifacts=artifacts))

    session_data = get_table(data, "session")
    if session_data is None:
        return _invalid(f"missing session for task {kind}")
    session = session_from_dict(session_data)
    if isinstance(session, Err):
        return session

    if kind == PublishSessionTask.kind:
        return Ok(PublishSessionTask(session=session.value, artifacts=artifacts))

    if kind == RecordReleaseTask.kind:
        token = get_str(data, "token")
        if token is None:
            return _invalid("record task without token")
        return Ok(
            RecordReleaseTask(
                session=session.value,
                token=token,
                github_token=get_str(data, "githubToken"),
                artifacts=artifacts,
            )
        )

    return _invalid(f"unknown task {kind}")


def save_post_task(state: RunStateChannel, task: PostTask) -> Result[None, ReleaseError]:
    return state.save(POST_TASK_KEY, json.dumps(_to_dict(task)))


def clear_post_task(state: RunStateChannel) -> Result[None, ReleaseError]:
    """Forget a task left by an earlier run; an empty value reads as absent."""
    return state.save(POST_TASK_KEY, "")


def load_post_task(state: RunStateChannel) -> Result[PostTask | None, ReleaseError]:
    """The saved task, Ok(None) when the main phase left nothing to do."""
    raw = state.load(POST_TASK_KEY)
    if raw is None:
        return Ok(None)
    try:
        data = as_str_dict(json.loads(raw))
    except json.JSONDecodeError as e:
        return _invalid(str(e))
    if data is None:
        return _invalid("not a JSON object")
    return _from_dict(data)
