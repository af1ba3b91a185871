"""Git operations module.

Usage:
    from relflow.git import Repository

    repo = Repository(Path("/path/to/project"))
    listing = repo.list_remote_refs()
"""

from relflow.git.repository import (
    DEFAULT_REMOTE,
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
)

__all__ = [
    "DEFAULT_REMOTE",
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]
