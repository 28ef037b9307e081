"""Console output abstraction.

This module provides a protocol for job log output that can be implemented
by different backends (Rich with GitHub workflow commands, mock for testing).
Services log through the protocol and never print directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "ActionsConsole",
    "MockConsole",
    "escape_command_data",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()  # Green, positive message
    ERROR = auto()  # Red, error annotation
    WARNING = auto()  # Yellow, warning annotation
    INFO = auto()  # Cyan, informational
    DEBUG = auto()  # Only shown when step debug logging is on
    DIM = auto()  # Dimmed/muted text

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Protocol for job log output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling.

        Args:
            message: The text to print
            style: The style to apply
        """
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def mask(self, value: str) -> None:
        """Register a value for redaction in all later log lines."""
        ...


def escape_command_data(value: str) -> str:
    """Escape a workflow command payload (one command per line)."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsConsole:
    """Console for CI runners.

    Regular messages go through Rich. Warnings, errors, debug lines and masks
    are emitted as GitHub workflow commands so the runner annotates or
    redacts them.
    """

    def __init__(self) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console

        self._console = Console()
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DEBUG: "dim",
            Style.DIM: "dim",
        }

    def _command(self, name: str, value: str) -> None:
        # Console.out does not wrap or apply markup; commands must stay on one line.
        self._console.out(f"::{name}::{escape_command_data(value)}", highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False)
        else:
            self._console.print(message, markup=False)

    def success(self, message: str) -> None:
        self._console.print(message, style="green", markup=False)

    def error(self, message: str) -> None:
        self._command("error", message)

    def warning(self, message: str) -> None:
        self._command("warning", message)

    def info(self, message: str) -> None:
        self._console.print(message, markup=False, highlight=False)

    def debug(self, message: str) -> None:
        self._command("debug", message)

    def mask(self, value: str) -> None:
        for line in value.splitlines() or [value]:
            if line.strip():
                self._command("add-mask", line)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


def _empty_masks() -> list[str]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)
    masked: list[str] = field(default_factory=_empty_masks)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.INFO))

    def debug(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"debug: {message}", Style.DEBUG))

    def mask(self, value: str) -> None:
        self.masked.append(value)

    # Test helper methods

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def warnings(self) -> list[str]:
        return [o.message for o in self.outputs if o.style == Style.WARNING]

    def find(self, substring: str) -> list[OutputRecord]:
        """Find all outputs containing a substring."""
        return [o for o in self.outputs if substring in o.message]
