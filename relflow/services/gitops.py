"""Glue between ``Repository`` results and release errors."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from relflow.core.result import Err, Ok, Result
from relflow.git.repository import GitError
from relflow.output.console import ConsoleProtocol, Style
from relflow.release.errors import ReleaseError

T = TypeVar("T")


def git_failed(error: GitError, message: str) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=message, hint=error.message or None)


def run_git(
    console: ConsoleProtocol,
    echo: str,
    call: Callable[[], Result[T, GitError]],
    *,
    message: str,
) -> Result[T, ReleaseError]:
    """Echo ``echo`` dimmed, run ``call``, map a GitError to ``message``."""
    console.print(echo, Style.DIM)
    result = call()
    if isinstance(result, Err):
        return Err(git_failed(result.error, message))
    return Ok(result.value)
