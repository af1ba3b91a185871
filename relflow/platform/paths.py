"""User-level path lookup."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

__all__ = ["DEFAULT_CLI_HOME", "home", "cli_home"]

# Directory under the user's home holding credential cache and temp files
DEFAULT_CLI_HOME = ".relflow"


def home(environ: Mapping[str, str] | None = None) -> Path:
    """Get the user's home directory.

    Uses USERPROFILE on Windows, HOME on Unix, then falls back to
    ``Path.home()``.
    """
    env = os.environ if environ is None else environ
    if os.name == "nt":
        userprofile = env.get("USERPROFILE")
        if userprofile:
            return Path(userprofile)
    else:
        home_env = env.get("HOME")
        if home_env:
            return Path(home_env)
    return Path.home()


def cli_home(environ: Mapping[str, str] | None = None) -> Path:
    """Resolve the relflow home directory.

    ``RELFLOW_HOME`` may be absolute, or relative to the user's home.
    """
    env = os.environ if environ is None else environ
    override = env.get("RELFLOW_HOME", "").strip()
    base = home(env)
    if override:
        path = Path(override).expanduser()
        return path if path.is_absolute() else base / path
    return base / DEFAULT_CLI_HOME
