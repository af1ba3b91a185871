"""Development branch coordination.

One release cycle on the local side:

    resolve version -> stash -> conflicts -> commit -> checkout dev/<v>
    -> pull main -> conflicts -> [pull dev/<v>] -> conflicts -> push dev/<v>

Every step depends on the previous one, so the first failure stops the
cycle and the user re-runs the command once the tree is fixed.
"""

from __future__ import annotations

from relflow.core.result import Err, Ok, Result
from relflow.git.repository import DEFAULT_REMOTE, Repository
from relflow.output.console import ConsoleProtocol
from relflow.release.decisions import Decisions
from relflow.release.errors import ReleaseError
from relflow.release.model import MAIN_BRANCH, RepoContext
from relflow.release.pipeline import run_pipeline, step
from relflow.release.project import sync_version
from relflow.release.refs import has_ref, latest_version, parse_remote_versions
from relflow.release.resolver import Resolution, resolve_version
from relflow.release.semver import parse_version
from relflow.services.gitops import git_failed, run_git
from relflow.services.worktree import WorkingTreeGuard

GITIGNORE_FILE = ".gitignore"

DEFAULT_GITIGNORE = """\
.DS_Store
node_modules
/dist

# local env files
.env.local
.env.*.local

# Log files
npm-debug.log*
yarn-debug.log*
yarn-error.log*
pnpm-debug.log*

# Editor directories and files
.idea
.vscode
*.suo
*.ntvs*
*.njsproj
*.sln
*.sw?
"""


class BranchCoordinator:
    def __init__(
        self,
        *,
        repo: Repository,
        console: ConsoleProtocol,
        decisions: Decisions,
        guard: WorkingTreeGuard | None = None,
    ) -> None:
        self.repo = repo
        self.console = console
        self.decisions = decisions
        self.guard = guard or WorkingTreeGuard(repo=repo, console=console, decisions=decisions)

    # -- release cycle ------------------------------------------------------

    def sync(self, ctx: RepoContext) -> Result[str, ReleaseError]:
        """Bring ``dev/<version>`` up to date locally and on the remote.

        Returns the development branch name, also stored in
        ``ctx.current_branch``.
        """
        result = run_pipeline(
            [
                step("resolve version", lambda: self.resolve(ctx)),
                step("stash check", self.guard.check_stash),
                step("conflict check", self.guard.check_conflicts),
                step("commit check", self.guard.commit_pending),
                step("checkout", lambda: self.checkout(self._branch(ctx))),
                step("merge remote", lambda: self.merge_remote(ctx)),
                step("push", lambda: self.push(self._branch(ctx))),
            ],
            console=self.console,
        )
        if isinstance(result, Err):
            return result
        return Ok(self._branch(ctx))

    def resolve(self, ctx: RepoContext) -> Result[Resolution, ReleaseError]:
        """Pick the development branch and bump ``ctx.version`` if needed."""
        self.console.info("resolving development branch")
        listing = self.remote_listing()
        if isinstance(listing, Err):
            return listing

        latest = latest_version(listing.value, "release-tag")
        self.console.debug(f"latest release: {latest}")
        resolution = resolve_version(
            latest_release=latest,
            working_version=ctx.version,
            choose_bump=self.decisions.choose_bump,
        )
        if isinstance(resolution, Err):
            return resolution

        resolved = resolution.value
        if resolved.bumped:
            self.console.info(f"latest release {latest} >= local {ctx.version}; now {resolved.version}")
            synced = sync_version(ctx.source_dir, str(resolved.version))
            if isinstance(synced, Err):
                return synced
        elif latest is not None:
            self.console.info(f"local {ctx.version} > latest release {latest}")

        ctx.version = str(resolved.version)
        ctx.current_branch = resolved.branch
        self.console.success(f"development branch: {resolved.branch}")
        return Ok(resolved)

    def checkout(self, branch: str) -> Result[None, ReleaseError]:
        """Switch to ``branch``, creating it from HEAD when it does not exist."""
        branches = self.repo.local_branches()
        if isinstance(branches, Err):
            return Err(git_failed(branches.error, "failed to list local branches"))

        if branch in branches.value:
            result = run_git(
                self.console,
                f"git checkout {branch}",
                lambda: self.repo.checkout(branch),
                message=f"failed to checkout {branch}",
            )
        else:
            result = run_git(
                self.console,
                f"git checkout -b {branch}",
                lambda: self.repo.checkout_new(branch),
                message=f"failed to create {branch}",
            )
        if isinstance(result, Err):
            return result
        self.console.success(f"on branch {branch}")
        return Ok(None)

    def merge_remote(self, ctx: RepoContext) -> Result[None, ReleaseError]:
        """Merge remote main, then the remote copy of the dev branch if present."""
        branch = self._branch(ctx)
        merged = self.pull(MAIN_BRANCH)
        if isinstance(merged, Err):
            return merged

        listing = self.remote_listing()
        if isinstance(listing, Err):
            return listing
        remote_devs = parse_remote_versions(listing.value, "dev-branch")
        if parse_version(ctx.version) not in remote_devs:
            self.console.debug(f"no remote {branch}")
            return Ok(None)
        return self.pull(branch)

    def pull(self, branch: str, *, rebase: bool = False) -> Result[None, ReleaseError]:
        """Pull ``origin/<branch>`` and verify the tree is not conflicted."""
        mode = "--rebase" if rebase else "--no-rebase"
        self.console.print(f"git pull {mode} {DEFAULT_REMOTE} {branch}")
        pulled = self.repo.pull(branch, rebase=rebase)
        if isinstance(pulled, Err):
            conflicts = self.guard.check_conflicts()
            if isinstance(conflicts, Err):
                return conflicts
            return Err(git_failed(pulled.error, f"failed to pull {DEFAULT_REMOTE}/{branch}"))
        return self.guard.check_conflicts()

    def push(self, branch: str) -> Result[None, ReleaseError]:
        result = run_git(
            self.console,
            f"git push {DEFAULT_REMOTE} {branch}",
            lambda: self.repo.push(branch),
            message=f"failed to push {branch}",
        )
        if isinstance(result, Err):
            return result
        self.console.success(f"pushed {branch}")
        return Ok(None)

    def remote_listing(self) -> Result[str, ReleaseError]:
        listing = self.repo.list_remote_refs()
        if isinstance(listing, Err):
            return Err(git_failed(listing.error, "failed to list remote refs"))
        return Ok(listing.value)

    # -- first-time setup ---------------------------------------------------

    def initialize(self, ctx: RepoContext) -> Result[bool, ReleaseError]:
        """Create the local repository and link it to ``ctx.remote_url``.

        Ok(False) when the directory is already a git repository.
        """
        if self.repo.exists():
            self.console.success("git repository already initialized")
            return Ok(False)
        if ctx.remote_url is None:
            return Err(ReleaseError(kind="invalid_input", message="remote URL is not resolved"))
        remote_url = ctx.remote_url

        result = run_pipeline(
            [
                step(".gitignore", lambda: self._write_gitignore(ctx)),
                step(
                    "git init",
                    lambda: run_git(
                        self.console,
                        f"git init --initial-branch={MAIN_BRANCH}",
                        lambda: self.repo.init(MAIN_BRANCH),
                        message="git init failed",
                    ),
                ),
                step("git remote", lambda: self._ensure_origin(remote_url)),
                step("conflict check", self.guard.check_conflicts),
                step("commit check", self.guard.commit_pending),
                step("first sync", self._first_sync),
            ],
            console=self.console,
        )
        if isinstance(result, Err):
            return result
        return Ok(True)

    def _write_gitignore(self, ctx: RepoContext) -> Result[None, ReleaseError]:
        path = ctx.source_dir / GITIGNORE_FILE
        if path.exists():
            return Ok(None)
        try:
            path.write_text(DEFAULT_GITIGNORE, encoding="utf-8")
        except OSError as e:
            return Err(ReleaseError(kind="io_failed", message=f"cannot write {path}: {e}"))
        self.console.success(f"wrote {GITIGNORE_FILE}")
        return Ok(None)

    def _ensure_origin(self, url: str) -> Result[None, ReleaseError]:
        remotes = self.repo.remotes()
        if isinstance(remotes, Err):
            return Err(git_failed(remotes.error, "failed to list remotes"))
        if DEFAULT_REMOTE in remotes.value:
            return Ok(None)
        added = run_git(
            self.console,
            f"git remote add {DEFAULT_REMOTE} {url}",
            lambda: self.repo.add_remote(DEFAULT_REMOTE, url),
            message="failed to add remote",
        )
        if isinstance(added, Err):
            return added
        return Ok(None)

    def _first_sync(self) -> Result[None, ReleaseError]:
        # No shared history yet: rebase local commits onto an existing remote main.
        listing = self.remote_listing()
        if isinstance(listing, Err):
            return listing
        if has_ref(listing.value, f"refs/heads/{MAIN_BRANCH}"):
            return self.pull(MAIN_BRANCH, rebase=True)
        return self.push(MAIN_BRANCH)

    # -- after a production publish -----------------------------------------

    def finish_release(self, ctx: RepoContext) -> Result[None, ReleaseError]:
        """Fold ``dev/<version>`` into main and remove it locally and remotely.

        Runs after the release tag exists, so the tagged commit stays
        reachable once the development branch is gone.
        """
        branch = self._branch(ctx)
        return run_pipeline(
            [
                step("checkout main", lambda: self.checkout(MAIN_BRANCH)),
                step(
                    "merge",
                    lambda: run_git(
                        self.console,
                        f"git merge {branch}",
                        lambda: self.repo.merge(branch),
                        message=f"failed to merge {branch} into {MAIN_BRANCH}",
                    ),
                ),
                step("push main", lambda: self.push(MAIN_BRANCH)),
                step(
                    "delete local branch",
                    lambda: run_git(
                        self.console,
                        f"git branch -d {branch}",
                        lambda: self.repo.delete_local_branch(branch),
                        message=f"failed to delete local {branch}",
                    ),
                ),
                step(
                    "delete remote branch",
                    lambda: run_git(
                        self.console,
                        f"git push {DEFAULT_REMOTE} --delete {branch}",
                        lambda: self.repo.delete_remote_branch(branch),
                        message=f"failed to delete remote {branch}",
                    ),
                ),
            ],
            console=self.console,
        )

    def _branch(self, ctx: RepoContext) -> str:
        if ctx.current_branch is None:
            raise RuntimeError("development branch is not resolved yet")
        return ctx.current_branch
