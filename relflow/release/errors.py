"""Error payload shared by every release component."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relflow.core.errors import ErrorCode

ReleaseErrorKind = Literal[
    # user must act, then re-run
    "conflict",
    "stash_failed",
    "invalid_input",
    "invalid_version",
    "missing_project",
    "invalid_build_command",
    "aborted",
    # environment
    "git_failed",
    "provider_init",
    # network
    "network",
    "repo_create_failed",
    "connect_timeout",
    "publish_timeout",
    # remote pipeline
    "publish_failed",
    # local files
    "io_failed",
]

_EXIT_CODES: dict[str, ErrorCode] = {
    "conflict": ErrorCode.USER_ERROR,
    "stash_failed": ErrorCode.USER_ERROR,
    "invalid_input": ErrorCode.USER_ERROR,
    "invalid_version": ErrorCode.USER_ERROR,
    "missing_project": ErrorCode.USER_ERROR,
    "invalid_build_command": ErrorCode.USER_ERROR,
    "aborted": ErrorCode.USER_ERROR,
    "git_failed": ErrorCode.ENV_ERROR,
    "provider_init": ErrorCode.ENV_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "repo_create_failed": ErrorCode.NETWORK_ERROR,
    "connect_timeout": ErrorCode.NETWORK_ERROR,
    "publish_timeout": ErrorCode.NETWORK_ERROR,
    "publish_failed": ErrorCode.BUILD_ERROR,
    "io_failed": ErrorCode.IO_ERROR,
}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Attributes:
        kind: Machine-readable category, mapped to an exit code
        message: One-line description for the user
        hint: Optional follow-up (command output, what to do next)
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def exit_code(self) -> ErrorCode:
        return _EXIT_CODES.get(self.kind, ErrorCode.USER_ERROR)
