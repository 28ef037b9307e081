"""Release recording helper for multi-job CI workflows."""

__version__ = "0.3.0"
