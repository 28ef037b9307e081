"""The step's main phase: resolve the mode and do its up-front work.

Work that must happen after the rest of the job (publishing a session,
recording a single-job release, uploading build artifacts) is handed to the
post phase as a PostTask.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from record_release.clients.ledger import (
    LedgerTarget,
    query_current_version,
    query_next_version,
    record_deployment,
)
from record_release.core.config import ActionInputs, GithubContext
from record_release.core.result import Err, Ok, Result
from record_release.output.console import ConsoleProtocol
from record_release.release.errors import ReleaseError
from record_release.release.model import CommitInfo, DeploymentRecord, Session
from record_release.release.tags import format_git_tag
from record_release.services.artifacts import (
    ARTIFACT_BUNDLE_PREFIX,
    collect_local,
    collect_remote,
    split_patterns,
)
from record_release.services.config_delivery import deliver_environment_config
from record_release.services.context import RunContext
from record_release.services.handoff import (
    PostTask,
    PublishSessionTask,
    RecordReleaseTask,
    UploadArtifactsTask,
    clear_post_task,
    save_post_task,
)
from record_release.services.modes import (
    ExplicitMode,
    FinalizeMode,
    InitMode,
    QueryVersionMode,
    SingleJobMode,
    UploadMode,
    resolve_mode,
)
from record_release.services.publisher import publish_release
from record_release.services.session import resume_session

__all__ = [
    "commit_info",
    "load_release_body",
    "record_to_ledger",
    "run_main",
    "set_outputs",
]


@dataclass(frozen=True, slots=True)
class _LedgerScope:
    """Ledger target and environment a mode worked against, and its post work."""

    target: LedgerTarget
    environment: str
    post_task: PostTask | None = None


def load_release_body(inputs: ActionInputs, console: ConsoleProtocol, *, root: Path) -> str | None:
    """The ``body`` input, else the contents of ``body-file``."""
    if inputs.body:
        return inputs.body
    if not inputs.body_file:
        return None

    path = Path(inputs.body_file)
    if not path.is_absolute():
        path = root / path
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        console.warning(f"Failed to read body file: {inputs.body_file}")
        return None


def commit_info(inputs: ActionInputs, github: GithubContext) -> CommitInfo:
    """Commit metadata, defaulting to the workflow's commit."""
    message = inputs.commit_message or github.head_commit_message or ""
    first_line = message.split("\n")[0].rstrip("\r")
    return CommitInfo(
        commit_hash=inputs.commit_hash or github.sha,
        commit_message=first_line or None,
        deployed_by=inputs.deployed_by,
    )


def set_outputs(ctx: RunContext, values: dict[str, str]) -> Result[None, ReleaseError]:
    for name, value in values.items():
        result = ctx.outputs.set_output(name, value)
        if isinstance(result, Err):
            return result
    return Ok(None)


def record_to_ledger(
    ctx: RunContext,
    target: LedgerTarget,
    *,
    environment: str,
    version: str,
    tag: str,
    commit: CommitInfo,
) -> Result[DeploymentRecord, ReleaseError]:
    """Record the release in the ledger and log what was recorded."""
    ctx.console.info(f"Recording release {version} to {environment}...")
    recorded = record_deployment(
        ctx.http,
        target,
        environment=environment,
        version=version,
        commit=commit,
        git_tag=tag,
    )
    if isinstance(recorded, Err):
        return recorded

    record = recorded.value
    ctx.console.success("Release recorded!")
    ctx.console.info(f"  Application: {record.application_name}")
    ctx.console.info(f"  Version: {record.version}")
    ctx.console.info(f"  Environment: {record.environment}")
    ctx.console.info(f"  Tag: {tag}")
    return Ok(record)


def _remote_artifacts(ctx: RunContext) -> list[Path]:
    return collect_remote(ctx.blob, ctx.console, dest=ctx.workdir / ARTIFACT_BUNDLE_PREFIX)


def _local_artifacts(ctx: RunContext, patterns: str | None) -> list[Path]:
    return collect_local(split_patterns(patterns), ctx.console, root=ctx.workspace)


def _record_and_publish(
    ctx: RunContext,
    target: LedgerTarget,
    *,
    session: Session,
    github_token: str | None,
    assets: list[Path],
) -> Result[None, ReleaseError]:
    tag = format_git_tag(
        version=session.version,
        release_prefix=session.release_prefix,
        application_name=session.application_name,
    )
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

    record = recorded.value
    outputs = set_outputs(ctx, {"version": record.version, "id": record.id})
    if isinstance(outputs, Err):
        return outputs

    publish_release(
        ctx.http,
        ctx.console,
        repo=ctx.repo,
        token=github_token,
        tag=tag,
        options=session.options,
        assets=assets,
    )
    return Ok(None)


def _run_upload(ctx: RunContext, mode: UploadMode) -> UploadArtifactsTask:
    ctx.console.info("Upload mode: Will upload artifacts in post-run")
    return UploadArtifactsTask(artifacts=mode.artifacts)


def _run_finalize(ctx: RunContext, mode: FinalizeMode) -> Result[_LedgerScope, ReleaseError]:
    ctx.console.info("Finalize mode: Loading session from previous job...")
    session = resume_session(ctx.blob, ctx.console, workdir=ctx.workdir)
    if session is None:
        return Err(
            ReleaseError(
                kind="session_missing",
                message="No session found. Run with environment and dry-run: true first.",
            )
        )

    target = LedgerTarget(api_url=session.api_url, token=mode.token)
    assets = _remote_artifacts(ctx) + _local_artifacts(ctx, mode.artifacts)
    done = _record_and_publish(
        ctx,
        target,
        session=session,
        github_token=mode.github_token,
        assets=assets,
    )
    if isinstance(done, Err):
        return done
    return Ok(_LedgerScope(target=target, environment=session.environment))


def _run_query(ctx: RunContext, mode: QueryVersionMode) -> Result[_LedgerScope, ReleaseError]:
    target = LedgerTarget(api_url=mode.api_url, token=mode.token)
    ctx.console.info(f"Getting current version for {mode.environment}...")
    current = query_current_version(ctx.http, target, environment=mode.environment)
    if isinstance(current, Err):
        return current

    version = current.value
    ctx.console.info(f"Current version: {version.version}")
    outputs = set_outputs(
        ctx,
        {
            "version": version.version,
            "deployed-at": version.deployed_at,
            "commit-hash": version.commit_hash or "",
        },
    )
    if isinstance(outputs, Err):
        return outputs
    return Ok(_LedgerScope(target=target, environment=mode.environment))


def _next_session(
    ctx: RunContext,
    mode: InitMode | SingleJobMode,
    *,
    dry_run_label: str,
) -> Result[Session, ReleaseError]:
    target = LedgerTarget(api_url=mode.api_url, token=mode.token)
    ctx.console.info(f"Getting next version for {mode.environment}{dry_run_label}...")
    queried = query_next_version(ctx.http, target, environment=mode.environment, bump=mode.bump)
    if isinstance(queried, Err):
        return queried

    next_version = queried.value
    ctx.console.info(f"Next version: {next_version.version}")
    outputs = set_outputs(ctx, {"version": next_version.version})
    if isinstance(outputs, Err):
        return outputs

    return Ok(
        Session.create(
            environment=mode.environment,
            version=next_version.version,
            application_name=next_version.application_name,
            api_url=mode.api_url,
            options=mode.options,
            commit=mode.commit,
        )
    )


def _run_init(ctx: RunContext, mode: InitMode) -> Result[_LedgerScope, ReleaseError]:
    session = _next_session(ctx, mode, dry_run_label=" (dry run)")
    if isinstance(session, Err):
        return session

    ctx.console.info("Session will be uploaded in post-run for multi-job workflow")
    return Ok(
        _LedgerScope(
            LedgerTarget(mode.api_url, mode.token),
            mode.environment,
            post_task=PublishSessionTask(session=session.value, artifacts=mode.artifacts),
        )
    )


def _run_single_job(ctx: RunContext, mode: SingleJobMode) -> Result[_LedgerScope, ReleaseError]:
    session = _next_session(ctx, mode, dry_run_label="")
    if isinstance(session, Err):
        return session

    ctx.console.info("Release will be recorded in post-run")
    task = RecordReleaseTask(
        session=session.value,
        token=mode.token,
        github_token=mode.github_token,
        artifacts=mode.artifacts,
    )
    return Ok(_LedgerScope(LedgerTarget(mode.api_url, mode.token), mode.environment, post_task=task))


def _run_explicit(ctx: RunContext, mode: ExplicitMode) -> Result[_LedgerScope, ReleaseError]:
    target = LedgerTarget(api_url=mode.api_url, token=mode.token)
    # A dry run with the explicit version only resolves the application name.
    queried = query_next_version(ctx.http, target, environment=mode.environment, version=mode.version)
    if isinstance(queried, Err):
        return queried

    session = Session.create(
        environment=mode.environment,
        version=mode.version,
        application_name=queried.value.application_name,
        api_url=mode.api_url,
        options=mode.options,
        commit=mode.commit,
    )
    assets = _local_artifacts(ctx, mode.artifacts) + _remote_artifacts(ctx)
    done = _record_and_publish(
        ctx,
        target,
        session=session,
        github_token=mode.github_token,
        assets=assets,
    )
    if isinstance(done, Err):
        return done
    return Ok(_LedgerScope(target=target, environment=mode.environment))


def _wants_config(inputs: ActionInputs) -> bool:
    return bool(inputs.secret_key) or inputs.load_config


def run_main(inputs: ActionInputs, ctx: RunContext) -> Result[None, ReleaseError]:
    """Run the main phase for one step invocation.

    Args:
        inputs: Step inputs
        ctx: Channels and clients of this run

    Returns:
        Ok(None) on success; Err is the step's failure
    """
    for secret in inputs.secrets():
        ctx.outputs.mask(secret)

    cleared = clear_post_task(ctx.state)
    if isinstance(cleared, Err):
        return cleared

    body = load_release_body(inputs, ctx.console, root=ctx.workspace)
    resolved = resolve_mode(inputs, commit=commit_info(inputs, ctx.github), body=body)
    if isinstance(resolved, Err):
        return resolved

    mode = resolved.value
    ctx.console.debug(f"mode: {mode.name}")

    scope: Result[_LedgerScope, ReleaseError]
    match mode:
        case UploadMode():
            if _wants_config(inputs):
                ctx.console.warning("Configuration requires a token; load-config ignored")
            return save_post_task(ctx.state, _run_upload(ctx, mode))
        case FinalizeMode():
            scope = _run_finalize(ctx, mode)
        case QueryVersionMode():
            scope = _run_query(ctx, mode)
        case InitMode():
            scope = _run_init(ctx, mode)
        case ExplicitMode():
            scope = _run_explicit(ctx, mode)
        case SingleJobMode():
            scope = _run_single_job(ctx, mode)

    if isinstance(scope, Err):
        return scope

    if _wants_config(inputs):
        delivered = deliver_environment_config(
            ctx.http,
            ctx.console,
            ctx.outputs,
            target=scope.value.target,
            environment=scope.value.environment,
            secret_key=inputs.secret_key,
        )
        if isinstance(delivered, Err):
            return delivered

    # Post work is handed over only once the main phase has fully succeeded.
    if scope.value.post_task is None:
        return Ok(None)
    return save_post_task(ctx.state, scope.value.post_task)


