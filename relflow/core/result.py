"""Result type for explicit error handling.

Every fallible release step returns ``Result[T, E]`` instead of raising, so
the orchestrator can stop a pipeline at the first failure and decide how to
report it.

Usage:
    match repo.status():
        case Ok(status):
            print(status.branch)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]
