"""Step outputs consumed by later steps of the workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from record_release.core.result import Err, Ok, Result
from record_release.platform.files import append_command_file
from record_release.release.errors import ReleaseError

if TYPE_CHECKING:
    from record_release.output.console import ConsoleProtocol

__all__ = ["StepOutputs", "ActionsStepOutputs", "MemoryStepOutputs"]


class StepOutputs(Protocol):
    def set_output(self, name: str, value: str) -> Result[None, ReleaseError]: ...

    def mask(self, value: str) -> None:
        """Redact value from the job log before it is ever printed."""
        ...


class ActionsStepOutputs:
    """Outputs appended to ``GITHUB_OUTPUT``; echoed to the log without one."""

    def __init__(self, output_file: Path | None, console: ConsoleProtocol) -> None:
        self._output_file = output_file
        self._console = console

    def set_output(self, name: str, value: str) -> Result[None, ReleaseError]:
        if self._output_file is None:
            self._console.debug(f"output {name}={value}")
            return Ok(None)
        try:
            append_command_file(self._output_file, name, value)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="io_error",
                    message=f"failed to set output {name}: {e}",
                    hint=str(self._output_file),
                )
            )
        return Ok(None)

    def mask(self, value: str) -> None:
        self._console.mask(value)


def _empty_outputs() -> dict[str, str]:
    return {}


def _empty_masks() -> list[str]:
    return []


@dataclass
class MemoryStepOutputs:
    outputs: dict[str, str] = field(default_factory=_empty_outputs)
    masked: list[str] = field(default_factory=_empty_masks)

    def set_output(self, name: str, value: str) -> Result[None, ReleaseError]:
        self.outputs[name] = value
        return Ok(None)

    def mask(self, value: str) -> None:
        self.masked.append(value)
