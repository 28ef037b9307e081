from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import typer

from record_release.channels.actions_artifacts import ActionsArtifactChannel
from record_release.channels.blob import BlobChannel, DirectoryBlobChannel
from record_release.channels.run_state import ActionsRunState, FileRunState, RunStateChannel
from record_release.channels.step_io import ActionsStepOutputs
from record_release.clients.http import HttpClient, RealHttpClient
from record_release.core.config import ActionInputs, GithubContext
from record_release.core.result import Err
from record_release.output.console import ActionsConsole, ConsoleProtocol
from record_release.output.errors import print_release_error, release_error_exit_code
from record_release.services.context import RunContext

BLOB_DIR_ENV = "RECORD_RELEASE_BLOB_DIR"
STATE_FILE_NAME = "record-release-state.json"


@dataclass(frozen=True, slots=True)
class CLIContext:
    inputs: ActionInputs
    run: RunContext

    @property
    def console(self) -> ConsoleProtocol:
        return self.run.console


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


def select_blob_channel(
    env: Mapping[str, str],
    http: HttpClient,
    github: GithubContext,
    console: ConsoleProtocol,
) -> BlobChannel:
    """Workflow artifacts on a runner, a local directory anywhere else."""
    runtime_token = env.get("ACTIONS_RUNTIME_TOKEN")
    results_url = env.get("ACTIONS_RESULTS_URL")
    if runtime_token and results_url:
        channel = ActionsArtifactChannel.from_runtime(
            http, results_url=results_url, runtime_token=runtime_token
        )
        if isinstance(channel, Err):
            print_release_error(channel.error, console)
            raise typer.Exit(code=release_error_exit_code(channel.error))
        return channel.value

    root = env.get(BLOB_DIR_ENV) or str(github.temp_dir / "record-release-blobs")
    console.debug(f"blob storage: {root}")
    return DirectoryBlobChannel(Path(root))


def select_run_state(env: Mapping[str, str], github: GithubContext) -> RunStateChannel:
    state_file = _optional_path(env.get("GITHUB_STATE"))
    if state_file is not None:
        return ActionsRunState(state_file, env)
    return FileRunState(github.temp_dir / STATE_FILE_NAME)


def build_context(env: Mapping[str, str] | None = None) -> CLIContext:
    env = dict(os.environ) if env is None else env
    console = ActionsConsole()
    http = RealHttpClient()
    github = GithubContext.from_env(env)

    run = RunContext(
        console=console,
        http=http,
        blob=select_blob_channel(env, http, github, console),
        state=select_run_state(env, github),
        outputs=ActionsStepOutputs(_optional_path(env.get("GITHUB_OUTPUT")), console),
        github=github,
    )
    return CLIContext(inputs=ActionInputs.from_env(env), run=run)
