"""Result type for explicit error propagation.

Every remote call, blob operation and decryption step returns a Result
instead of raising. Callers branch on the variant and either propagate the
error (fail fast) or downgrade it to a warning (best-effort steps).

Usage:
    result = query_next_version(http, target, environment="staging", bump="patch")
    match result:
        case Ok(next_version):
            console.info(f"Next version: {next_version.version}")
        case Err(error):
            return Err(error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome carrying an error value."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
