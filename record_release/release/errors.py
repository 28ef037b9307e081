"""Error types for the release transaction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "invalid_input",
    "api_error",
    "network_error",
    "session_missing",
    "blob_failed",
    "secret_invalid",
    "io_error",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Produced by clients, channels and services alike and rendered once by the
    CLI, which also maps ``kind`` to a process exit code.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
