"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from record_release.core.result import Err, Result
from record_release.output.errors import print_release_error, release_error_exit_code
from record_release.release.errors import ReleaseError

if TYPE_CHECKING:
    from record_release.cli.context import CLIContext

T = TypeVar("T")


def exit_on_error(result: Result[T, ReleaseError], ctx: CLIContext) -> None:
    """Exit with the error's exit code if result is Err, otherwise return.

    This helper reduces boilerplate for the common pattern:
        match result:
            case Err(e):
                print_release_error(e, ctx.console)
                raise typer.Exit(code=release_error_exit_code(e))
            case Ok(_):
                pass
    """
    if isinstance(result, Err):
        print_release_error(result.error, ctx.console)
        raise typer.Exit(code=release_error_exit_code(result.error))
