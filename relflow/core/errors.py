"""Process exit codes for relflow commands.

The numeric values are part of the CLI contract and should remain stable:
- 0: Success
- 1: User error (conflicts, bad input, aborted prompts, missing package.json)
- 2: Environment error (git failures, unsupported hosting provider)
- 3: Build error (the remote build/publish pipeline reported a failure)
- 4: Network error (REST lookups, publish connection, timeouts)
- 5: I/O error (credential cache could not be read or written)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
