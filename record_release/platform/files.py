"""Filesystem helpers."""

from __future__ import annotations

import os
import tempfile
import uuid
from pathlib import Path

__all__ = ["atomic_write_text", "append_command_file", "write_command_entry"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def write_command_entry(name: str, value: str) -> str:
    """Format one ``name<<delimiter`` entry for a runner command file.

    The heredoc form carries multi-line values; the delimiter is random so a
    value can never terminate its own entry.
    """
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError("command file delimiter collides with the entry")
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def append_command_file(path: Path, name: str, value: str) -> None:
    """Append an entry to a runner command file (GITHUB_OUTPUT, GITHUB_STATE)."""
    with path.open("a", encoding="utf-8", newline="\n") as handle:
        handle.write(write_command_entry(name, value))
