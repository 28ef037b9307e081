"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from record_release.core.errors import ErrorCode
from record_release.output.console import Style
from record_release.release.errors import ReleaseError

if TYPE_CHECKING:
    from record_release.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a fatal error as the step's failure message."""
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    match error.kind:
        case "invalid_input":
            return int(ErrorCode.USER_ERROR)
        case "api_error" | "network_error":
            return int(ErrorCode.API_ERROR)
        case "session_missing":
            return int(ErrorCode.SESSION_ERROR)
        case "secret_invalid":
            return int(ErrorCode.SECRET_ERROR)
        case "blob_failed" | "io_error":
            return int(ErrorCode.IO_ERROR)
    return int(ErrorCode.USER_ERROR)
