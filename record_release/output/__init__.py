"""Output abstraction layer."""

from .console import (
    ActionsConsole,
    ConsoleProtocol,
    MockConsole,
    Style,
)

__all__ = [
    "ActionsConsole",
    "ConsoleProtocol",
    "MockConsole",
    "Style",
]
