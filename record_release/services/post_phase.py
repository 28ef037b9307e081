"""The step's post phase: perform the task the main phase handed over."""

from __future__ import annotations

from record_release.clients.ledger import LedgerTarget
from record_release.core.result import Err, Ok, Result
from record_release.release.errors import ReleaseError
from record_release.release.tags import format_git_tag
from record_release.services.artifacts import collect_local, publish_artifacts, split_patterns
from record_release.services.context import RunContext
from record_release.services.handoff import (
    PublishSessionTask,
    RecordReleaseTask,
    UploadArtifactsTask,
    clear_post_task,
    load_post_task,
)
from record_release.services.main_phase import record_to_ledger
from record_release.services.publisher import publish_release
from record_release.services.session import publish_session

__all__ = ["run_post"]


def _upload_artifacts(ctx: RunContext, patterns: str) -> Result[None, ReleaseError]:
    files = collect_local(split_patterns(patterns), ctx.console, root=ctx.workspace)
    uploaded = publish_artifacts(ctx.blob, files, ctx.console, root=ctx.workspace)
    if isinstance(uploaded, Err):
        return uploaded
    return Ok(None)


def _publish_session(ctx: RunContext, task: PublishSessionTask) -> Result[None, ReleaseError]:
    ctx.console.info("Uploading session for finalize job...")
    published = publish_session(ctx.blob, task.session, workdir=ctx.workdir)
    if isinstance(published, Err):
        return published
    ctx.console.success(f"Session uploaded: version={task.session.version}")

    if task.artifacts:
        return _upload_artifacts(ctx, task.artifacts)
    return Ok(None)


def _record_release(ctx: RunContext, task: RecordReleaseTask) -> Result[None, ReleaseError]:
    ctx.outputs.mask(task.token)
    if task.github_token:
        ctx.outputs.mask(task.github_token)

    session = task.session
    tag = format_git_tag(
        version=session.version,
        release_prefix=session.release_prefix,
        application_name=session.application_name,
    )
    target = LedgerTarget(api_url=session.api_url, token=task.token)
    recorded = record_to_ledger(
        ctx,
        target,
        environment=session.environment,
        version=session.version,
        tag=tag,
        commit=session.commit,
    )
    if isinstance(recorded, Err):
        return recorded

    assets = collect_local(split_patterns(task.artifacts), ctx.console, root=ctx.workspace)
    publish_release(
        ctx.http,
        ctx.console,
        repo=ctx.repo,
        token=task.github_token,
        tag=tag,
        options=session.options,
        assets=assets,
    )
    return Ok(None)


def run_post(ctx: RunContext) -> Result[None, ReleaseError]:
    loaded = load_post_task(ctx.state)
    if isinstance(loaded, Err):
        return loaded

    task = loaded.value
    if task is not None:
        # A task runs at most once, even when the post phase is invoked again.
        cleared = clear_post_task(ctx.state)
        if isinstance(cleared, Err):
            return cleared

    match task:
        case None:
            ctx.console.info("Skipping post run")
            return Ok(None)
        case UploadArtifactsTask(artifacts=artifacts):
            return _upload_artifacts(ctx, artifacts)
        case PublishSessionTask():
            return _publish_session(ctx, task)
        case RecordReleaseTask():
            return _record_release(ctx, task)
