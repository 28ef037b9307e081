from __future__ import annotations

from record_release.cli.commands._helpers import exit_on_error
from record_release.cli.context import build_context
from record_release.services.main_phase import run_main
from record_release.services.post_phase import run_post


def main_phase() -> None:
    """Run the step body: resolve the mode, query or record, hand off post work."""
    ctx = build_context()
    exit_on_error(run_main(ctx.inputs, ctx.run), ctx)


def post_phase() -> None:
    """Run the step cleanup: perform the task the main phase handed over."""
    ctx = build_context()
    exit_on_error(run_post(ctx.run), ctx)
