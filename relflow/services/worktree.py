"""Working tree checks run before any branch switch.

Each check is a no-op when there is nothing to do, so they can run as many
times as the pipeline needs them.
"""

from __future__ import annotations

from relflow.core.result import Err, Ok, Result
from relflow.git.repository import Repository
from relflow.output.console import ConsoleProtocol
from relflow.release.decisions import Decisions
from relflow.release.errors import ReleaseError
from relflow.services.gitops import git_failed, run_git


class WorkingTreeGuard:
    def __init__(
        self,
        *,
        repo: Repository,
        console: ConsoleProtocol,
        decisions: Decisions,
    ) -> None:
        self.repo = repo
        self.console = console
        self.decisions = decisions

    def check_stash(self) -> Result[None, ReleaseError]:
        """Pop the latest stash entry, if any.

        A failed pop means the stash conflicts with the tree; it has to be
        resolved by hand.
        """
        self.console.info("checking stash")
        entries = self.repo.stash_list()
        if isinstance(entries, Err):
            return Err(git_failed(entries.error, "failed to list stash"))
        if not entries.value:
            return Ok(None)

        self.console.debug(f"stash entries: {len(entries.value)}")
        popped = self.repo.stash_pop()
        if isinstance(popped, Err):
            return Err(
                ReleaseError(
                    kind="stash_failed",
                    message="git stash pop failed",
                    hint=popped.error.message or "Resolve the stash manually, then retry.",
                )
            )
        self.console.success("stash popped")
        return Ok(None)

    def check_conflicts(self) -> Result[None, ReleaseError]:
        self.console.info("checking for conflicts")
        status = self.repo.status()
        if isinstance(status, Err):
            return Err(git_failed(status.error, "failed to read git status"))

        conflicted = status.value.conflicted
        if conflicted:
            paths = ", ".join(e.path for e in conflicted)
            return Err(
                ReleaseError(
                    kind="conflict",
                    message="working tree has conflicts; resolve and commit them, then retry",
                    hint=paths,
                )
            )
        self.console.success("no conflicts")
        return Ok(None)

    def commit_pending(self) -> Result[bool, ReleaseError]:
        """Stage and commit every pending change; Ok(False) when clean."""
        status = self.repo.status()
        if isinstance(status, Err):
            return Err(git_failed(status.error, "failed to read git status"))

        pending = status.value.pending
        if not pending:
            return Ok(False)
        self.console.debug("pending: " + ", ".join(f"{e.xy} {e.path}" for e in pending))

        added = run_git(self.console, "git add -A", self.repo.add_all, message="git add failed")
        if isinstance(added, Err):
            return added

        message = self._ask_commit_message()
        if message is None:
            return Err(ReleaseError(kind="aborted", message="commit message prompt cancelled"))

        committed = run_git(
            self.console,
            f"git commit -m {message!r}",
            lambda: self.repo.commit(message),
            message="git commit failed",
        )
        if isinstance(committed, Err):
            return committed
        self.console.success("changes committed")
        return Ok(True)

    def _ask_commit_message(self) -> str | None:
        while True:
            answer = self.decisions.commit_message()
            if answer is None:
                return None
            if answer.strip():
                return answer.strip()
            self.console.warning("commit message cannot be empty")
