"""Coordination channels.

- blob: bundles shared between jobs of one workflow run
- run_state: values passed from a step's main phase to its post phase
- step_io: outputs consumed by later steps
"""

from .blob import BlobBundle, BlobChannel, DirectoryBlobChannel, MemoryBlobChannel
from .run_state import ActionsRunState, FileRunState, MemoryRunState, RunStateChannel
from .step_io import ActionsStepOutputs, MemoryStepOutputs, StepOutputs

__all__ = [
    "ActionsRunState",
    "ActionsStepOutputs",
    "BlobBundle",
    "BlobChannel",
    "DirectoryBlobChannel",
    "FileRunState",
    "MemoryBlobChannel",
    "MemoryRunState",
    "MemoryStepOutputs",
    "RunStateChannel",
    "StepOutputs",
]
