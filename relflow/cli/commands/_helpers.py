"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from relflow.output.console import ConsoleProtocol, Style
from relflow.release.errors import ReleaseError


def exit_release(error: ReleaseError, console: ConsoleProtocol) -> NoReturn:
    """Print ``error`` with its hint and exit with the mapped code.

    Replaces the repeated pattern:
        console.error(e.message)
        if e.hint:
            console.print(f"hint: {e.hint}", Style.DIM)
        raise typer.Exit(code=int(e.exit_code))
    """
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(error.exit_code))
