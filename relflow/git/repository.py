"""Git repository abstraction.

This module provides the Repository class wrapping the git plumbing the
release workflow needs. All operations return Result types.

Usage:
    repo = Repository(Path("/path/to/project"))

    match repo.status():
        case Ok(status):
            if status.conflicted:
                print("resolve conflicts first")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from relflow.core.result import Err, Ok, Result
from relflow.platform.process import ProcessError
from relflow.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone", "ls-remote"})

# Unmerged XY codes from `git status --porcelain`
_CONFLICT_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})

DEFAULT_REMOTE = "origin"

__all__ = [
    "DEFAULT_REMOTE",
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??", "UU")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_conflicted(self) -> bool:
        return self.xy in _CONFLICT_CODES


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed `git status --porcelain=v1 -b` output.

    Attributes:
        branch: Current branch name ("" on an unborn branch without output)
        entries: All status entries (conflicted, staged, unstaged, untracked)
    """

    branch: str
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def conflicted(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_conflicted]

    @property
    def pending(self) -> list[StatusEntry]:
        """Added, modified, deleted, renamed or untracked paths."""
        return [e for e in self.entries if not e.is_conflicted]


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the working tree root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if the working tree is already a git repository."""
        return (self.path / ".git").exists()

    # -- inspection ---------------------------------------------------------

    def status(self) -> Result[GitStatus, GitError]:
        result = self._git(["status", "--porcelain=v1", "-b"])
        if isinstance(result, Err):
            return result
        return Ok(self._parse_status(result.value))

    def local_branches(self) -> Result[list[str], GitError]:
        result = self._git(["branch", "--list", "--format=%(refname:short)"])
        if isinstance(result, Err):
            return result
        return Ok([ln.strip() for ln in result.value.splitlines() if ln.strip()])

    def tags(self) -> Result[list[str], GitError]:
        result = self._git(["tag", "--list"])
        if isinstance(result, Err):
            return result
        return Ok([ln.strip() for ln in result.value.splitlines() if ln.strip()])

    def remotes(self) -> Result[list[str], GitError]:
        result = self._git(["remote"])
        if isinstance(result, Err):
            return result
        return Ok([ln.strip() for ln in result.value.splitlines() if ln.strip()])

    def list_remote_refs(self, remote: str = DEFAULT_REMOTE) -> Result[str, GitError]:
        """Raw `git ls-remote --refs` listing (``<sha>\\t<ref>`` per line)."""
        return self._git(["ls-remote", "--refs", remote])

    def stash_list(self) -> Result[list[str], GitError]:
        result = self._git(["stash", "list"])
        if isinstance(result, Err):
            return result
        return Ok([ln for ln in result.value.splitlines() if ln.strip()])

    # -- working tree -------------------------------------------------------

    def init(self, initial_branch: str) -> Result[str, GitError]:
        return self._git(["init", f"--initial-branch={initial_branch}"])

    def add_remote(self, name: str, url: str) -> Result[str, GitError]:
        return self._git(["remote", "add", name, url])

    def stash_pop(self) -> Result[str, GitError]:
        return self._git(["stash", "pop"])

    def add_all(self) -> Result[str, GitError]:
        return self._git(["add", "-A"])

    def commit(self, message: str) -> Result[str, GitError]:
        return self._git(["commit", "-m", message])

    def checkout(self, branch: str) -> Result[str, GitError]:
        return self._git(["checkout", branch])

    def checkout_new(self, branch: str) -> Result[str, GitError]:
        """Create ``branch`` from HEAD and switch to it."""
        return self._git(["checkout", "-b", branch])

    def merge(self, branch: str) -> Result[str, GitError]:
        """Merge ``branch`` into the current branch."""
        return self._git(["merge", "--no-edit", branch])

    def delete_local_branch(self, branch: str) -> Result[str, GitError]:
        return self._git(["branch", "-d", branch])

    def create_tag(self, name: str) -> Result[str, GitError]:
        return self._git(["tag", name])

    def delete_tag(self, name: str) -> Result[str, GitError]:
        return self._git(["tag", "-d", name])

    # -- remote -------------------------------------------------------------

    def pull(
        self,
        branch: str,
        *,
        remote: str = DEFAULT_REMOTE,
        rebase: bool = False,
    ) -> Result[str, GitError]:
        """Pull ``remote/branch`` into the current branch (merge unless ``rebase``)."""
        mode = "--rebase" if rebase else "--no-rebase"
        return self._git(["pull", mode, remote, branch])

    def push(self, ref: str, *, remote: str = DEFAULT_REMOTE) -> Result[str, GitError]:
        return self._git(["push", remote, ref])

    def push_tags(self, *, remote: str = DEFAULT_REMOTE) -> Result[str, GitError]:
        return self._git(["push", remote, "--tags"])

    def delete_remote_branch(
        self,
        branch: str,
        *,
        remote: str = DEFAULT_REMOTE,
    ) -> Result[str, GitError]:
        return self._git(["push", remote, "--delete", branch])

    def delete_remote_tag(self, tag: str, *, remote: str = DEFAULT_REMOTE) -> Result[str, GitError]:
        return self._git(["push", remote, f":refs/tags/{tag}"])

    # -- internals ----------------------------------------------------------

    def _git(self, args: list[str]) -> Result[str, GitError]:
        """Run git and map failures to GitError."""
        result = self._run(args)
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=" ".join(args[:2]),
                        message=e.detail or f"git {args[0]} failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]
        if not lines:
            return GitStatus(branch="")

        branch_line = lines[0]
        if not branch_line.startswith("##"):
            return GitStatus(branch="", entries=self._parse_entries(lines))

        return GitStatus(
            branch=self._parse_branch_line(branch_line),
            entries=self._parse_entries(lines[1:]),
        )

    def _parse_entries(self, lines: list[str]) -> tuple[StatusEntry, ...]:
        entries: list[StatusEntry] = []
        for line in lines:
            if len(line) < 4:
                continue
            entries.append(StatusEntry(xy=line[:2], path=line[3:]))
        return tuple(entries)

    def _parse_branch_line(self, line: str) -> str:
        """Parse branch line: ## branch...upstream [info]"""
        s = line[2:].strip()
        s = s.split(" [", 1)[0].strip()
        if s.startswith("No commits yet on "):
            return s.removeprefix("No commits yet on ").strip()
        return s.split("...", 1)[0].strip()
