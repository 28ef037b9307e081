from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from record_release.channels.blob import BlobChannel
from record_release.channels.run_state import RunStateChannel
from record_release.channels.step_io import StepOutputs
from record_release.clients.github import GithubRepo
from record_release.clients.http import HttpClient
from record_release.core.config import GithubContext
from record_release.output.console import ConsoleProtocol


@dataclass(frozen=True, slots=True)
class RunContext:
    """Everything a phase talks to. Tests build one from in-memory channels."""

    console: ConsoleProtocol
    http: HttpClient
    blob: BlobChannel
    state: RunStateChannel
    outputs: StepOutputs
    github: GithubContext

    @property
    def workspace(self) -> Path:
        return self.github.workspace

    @property
    def workdir(self) -> Path:
        return self.github.temp_dir / "record-release"

    @property
    def repo(self) -> GithubRepo | None:
        if not self.github.repository:
            return None
        return GithubRepo.parse(self.github.repository, api_url=self.github.api_url)
