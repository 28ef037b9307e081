"""Per-job run state bridging a step's main phase to its post phase.

Values saved in main are readable in post of the same job only; nothing
here crosses job boundaries.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from record_release.core.result import Err, Ok, Result
from record_release.core.structured import as_str_dict
from record_release.platform.files import append_command_file, atomic_write_text
from record_release.release.errors import ReleaseError

__all__ = ["RunStateChannel", "ActionsRunState", "FileRunState", "MemoryRunState"]


@runtime_checkable
class RunStateChannel(Protocol):
    def save(self, name: str, value: str) -> Result[None, ReleaseError]: ...

    def load(self, name: str) -> str | None:
        """Value saved under name, or None when nothing was saved."""
        ...


class ActionsRunState:
    """GitHub Actions state: ``GITHUB_STATE`` in main, ``STATE_<name>`` in post."""

    def __init__(self, state_file: Path | None, env: Mapping[str, str]) -> None:
        self._state_file = state_file
        self._env = env

    def save(self, name: str, value: str) -> Result[None, ReleaseError]:
        if self._state_file is None:
            return Err(ReleaseError(kind="io_error", message="GITHUB_STATE is not set"))
        try:
            append_command_file(self._state_file, name, value)
        except OSError as e:
            return Err(
                ReleaseError(kind="io_error", message=f"failed to save state: {e}", hint=str(self._state_file))
            )
        return Ok(None)

    def load(self, name: str) -> str | None:
        return self._env.get(f"STATE_{name}") or None


class FileRunState:
    """State kept in a JSON file, for runs outside a CI runner."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict[str, str]:
        try:
            obj = as_str_dict(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            return {}
        if obj is None:
            return {}
        return {k: v for k, v in obj.items() if isinstance(v, str)}

    def save(self, name: str, value: str) -> Result[None, ReleaseError]:
        data = self._read()
        data[name] = value
        try:
            atomic_write_text(self.path, json.dumps(data, indent=2) + "\n")
        except OSError as e:
            return Err(ReleaseError(kind="io_error", message=f"failed to save state: {e}", hint=str(self.path)))
        return Ok(None)

    def load(self, name: str) -> str | None:
        return self._read().get(name) or None


def _empty_values() -> dict[str, str]:
    return {}


@dataclass
class MemoryRunState:
    values: dict[str, str] = field(default_factory=_empty_values)

    def save(self, name: str, value: str) -> Result[None, ReleaseError]:
        self.values[name] = value
        return Ok(None)

    def load(self, name: str) -> str | None:
        return self.values.get(name) or None
