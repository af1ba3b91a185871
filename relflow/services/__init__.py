"""Release services: each wraps git, a host API or the publish backend.

Services return ``Result[..., ReleaseError]`` and report progress through a
``ConsoleProtocol``; only the CLI turns errors into exit codes.
"""

from __future__ import annotations
