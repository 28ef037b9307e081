"""Release transaction services: mode resolution and the main/post phases."""

from record_release.services.context import RunContext
from record_release.services.main_phase import run_main
from record_release.services.post_phase import run_post

__all__ = ["RunContext", "run_main", "run_post"]
