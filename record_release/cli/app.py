from __future__ import annotations

import typer

from record_release import __version__
from record_release.cli.commands.phases import main_phase, post_phase


app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Record releases to the ops ledger from CI workflow steps.",
)


# Commands
app.command("main")(main_phase)
app.command("post")(post_phase)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()


def main_phase_entry() -> None:
    """Entry point for the step's main phase."""
    app(["main"])


def post_phase_entry() -> None:
    """Entry point for the step's post phase."""
    app(["post"])
