"""Filesystem helpers."""

from .files import append_command_file, atomic_write_text, write_command_entry

__all__ = ["append_command_file", "atomic_write_text", "write_command_entry"]
